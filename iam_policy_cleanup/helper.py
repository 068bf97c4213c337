import datetime


class Helper:
    def __init__(self):
        pass

    # https://codereview.stackexchange.com/a/253174/234246
    @staticmethod
    def get_setting(settings, path, default=None):
        result = settings
        for key in path.split("."):
            result = result.get(key)
            if result is None:
                return default
        return result

    @staticmethod
    def record_execution_log_action(
        execution_log, region, service, resource, resource_id, resource_action
    ):
        execution_log["AWS"][region][service][resource].append(
            {
                "id": resource_id,
                "action": resource_action,
                "timestamp": datetime.datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            }
        )

    @staticmethod
    def get_execution_log_actions(
        execution_log, region, service, resource, resource_action
    ):
        """Returns the IDs of every resource recorded with the given action."""
        actions = (
            execution_log.get("AWS", {})
            .get(region, {})
            .get(service, {})
            .get(resource, [])
        )
        return [
            action.get("id")
            for action in actions
            if action.get("action") == resource_action
        ]
