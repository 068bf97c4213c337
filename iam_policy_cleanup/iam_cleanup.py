import sys

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .helper import Helper


class IAMPolicyCleanup:
    def __init__(self, logging, settings, execution_log, session=None):
        self.logging = logging
        self.settings = settings
        self.execution_log = execution_log
        self.region = "global"

        self._session = session
        self._client_iam = None

    @property
    def session(self):
        if not self._session:
            self._session = boto3.session.Session(
                profile_name=Helper.get_setting(self.settings, "general.profile")
            )
        return self._session

    @property
    def client_iam(self):
        if not self._client_iam:
            self._client_iam = self.session.client("iam")
        return self._client_iam

    def run(self, policy_arns):
        for policy_arn in policy_arns:
            # versions must be removed before the policy itself, however
            # the policy delete is still attempted when they could not be
            self.policy_versions(policy_arn)
            self.policy(policy_arn)

    def policies_to_delete(self):
        """
        Returns the ARNs of all customer managed IAM Policies that are
        neither attached to a principal nor used as a permissions boundary.
        Listing failures are raised as no partial list can be trusted.
        """
        self.logging.debug("Started listing of unused IAM Policies.")

        policy_arns = []

        try:
            paginator = self.client_iam.get_paginator("list_policies")
            for page in paginator.paginate(Scope="Local"):
                for resource in page.get("Policies", []):
                    if (
                        resource.get("AttachmentCount", 0) == 0
                        and resource.get("PermissionsBoundaryUsageCount", 0) == 0
                    ):
                        policy_arns.append(resource.get("Arn"))
                    else:
                        self.logging.debug(
                            f"""IAM Policy '{resource.get("Arn")}' is in use and will not be deleted."""
                        )
        except (BotoCoreError, ClientError):
            self.logging.error("Could not list all IAM Policies.")
            self.logging.error(sys.exc_info()[1])
            raise

        self.logging.debug(
            f"Finished listing of unused IAM Policies, found {len(policy_arns)}."
        )
        return policy_arns

    def policy_versions(self, policy_arn):
        """Deletes all non-default IAM Policy Versions of an IAM Policy."""
        self.logging.debug(
            f"Started cleanup of IAM Policy Versions for IAM Policy '{policy_arn}'."
        )

        # the default version cannot be deleted with DeletePolicyVersion,
        # it is deleted together with the policy
        try:
            paginator = self.client_iam.get_paginator("list_policy_versions")
            resources = (
                paginator.paginate(PolicyArn=policy_arn)
                .build_full_result()
                .get("Versions", [])
            )
        except (BotoCoreError, ClientError):
            self.logging.error(
                f"Could not list all IAM Policy Versions for IAM Policy '{policy_arn}'."
            )
            self.logging.error(sys.exc_info()[1])
            Helper.record_execution_log_action(
                self.execution_log,
                self.region,
                "IAM",
                "Policy Version",
                policy_arn,
                "ERROR",
            )
            return False

        is_complete = True

        for resource in resources:
            if resource.get("IsDefaultVersion"):
                continue

            resource_id = resource.get("VersionId")

            self.logging.info(
                f"Deleting IAM Policy Version '{resource_id}' of IAM Policy '{policy_arn}'."
            )
            try:
                self.client_iam.delete_policy_version(
                    PolicyArn=policy_arn, VersionId=resource_id
                )
            except (BotoCoreError, ClientError):
                self.logging.error(
                    f"Could not delete IAM Policy Version '{resource_id}' of IAM Policy '{policy_arn}'."
                )
                self.logging.error(sys.exc_info()[1])
                resource_action = "ERROR"
                is_complete = False
            else:
                resource_action = "DELETE"

            Helper.record_execution_log_action(
                self.execution_log,
                self.region,
                "IAM",
                "Policy Version",
                f"{policy_arn}:{resource_id}",
                resource_action,
            )

        self.logging.debug(
            f"Finished cleanup of IAM Policy Versions for IAM Policy '{policy_arn}'."
        )
        return is_complete

    def policy(self, policy_arn):
        """Deletes an IAM Policy along with its default version."""
        self.logging.info(f"Deleting IAM Policy '{policy_arn}'.")

        try:
            self.client_iam.delete_policy(PolicyArn=policy_arn)
        except (BotoCoreError, ClientError):
            self.logging.error(f"Could not delete IAM Policy '{policy_arn}'.")
            self.logging.error(sys.exc_info()[1])
            resource_action = "ERROR"
        else:
            self.logging.debug(f"IAM Policy '{policy_arn}' has been deleted.")
            resource_action = "DELETE"

        Helper.record_execution_log_action(
            self.execution_log,
            self.region,
            "IAM",
            "Policy",
            policy_arn,
            resource_action,
        )
        return resource_action == "DELETE"
