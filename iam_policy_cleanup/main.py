import argparse
import logging
import os
import sys
from collections import defaultdict

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .helper import Helper
from .iam_cleanup import IAMPolicyCleanup

CONFIRMATION = "y"


class Cleanup:
    def __init__(self, logging, settings):
        self.logging = logging
        self.settings = settings

        # create dictionaries and variables
        self.execution_log = defaultdict(
            lambda: defaultdict(lambda: defaultdict(lambda: defaultdict(list)))
        )
        self.session = self.get_session()
        self.iam_class = IAMPolicyCleanup(
            self.logging, self.settings, self.execution_log, self.session
        )

    def get_session(self):
        profile = Helper.get_setting(self.settings, "general.profile")

        if profile:
            self.logging.debug(f"Using AWS profile '{profile}'.")
        else:
            self.logging.debug("Using the default AWS credential chain.")

        return boto3.session.Session(profile_name=profile)

    def run_cleanup(self):
        policy_arns = self.iam_class.policies_to_delete()

        if not policy_arns:
            print("There are no IAM Policies to delete.")
            return True

        print("The following IAM Policies will be deleted:")
        for policy_arn in policy_arns:
            print(policy_arn)

        if not self.confirm():
            print("Deletion has been cancelled.")
            return True

        self.iam_class.run(policy_arns)
        self.report()

        print("Deletion has completed.")
        return True

    def confirm(self):
        try:
            answer = input(
                f"Do you want to continue with the deletion? ({CONFIRMATION}/n): "
            )
        except EOFError:
            return False
        return answer.strip() == CONFIRMATION

    def report(self):
        """Logs a warning for every resource type that had failures."""
        for resource in ("Policy Version", "Policy"):
            failures = Helper.get_execution_log_actions(
                self.execution_log, self.iam_class.region, "IAM", resource, "ERROR"
            )
            if failures:
                self.logging.warning(
                    f"{len(failures)} IAM {resource} deletion(s) failed: "
                    f"""{", ".join(failures)}."""
                )


def setup_logging():
    root = logging.getLogger()

    if root.handlers:
        for handler in root.handlers[:]:
            root.removeHandler(handler)

    logging.getLogger("boto3").setLevel(logging.ERROR)
    logging.getLogger("botocore").setLevel(logging.ERROR)
    logging.getLogger("urllib3").setLevel(logging.ERROR)

    logging.basicConfig(
        format="[%(levelname)s] %(message)s (%(filename)s, %(funcName)s(), line %(lineno)d)",
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    )


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="iam-policy-cleanup",
        description="Deletes customer managed IAM Policies that are not attached to any "
        "IAM User, Group or Role and not used as a permissions boundary.",
    )
    parser.add_argument("--profile", help="AWS profile name to use")
    args = parser.parse_args(argv)

    setup_logging()

    settings = {"general": {"profile": args.profile}}

    try:
        cleanup = Cleanup(logging, settings)
    except (BotoCoreError, ClientError):
        logging.error("Could not load the AWS configuration.")
        logging.error(sys.exc_info()[1])
        return 1

    try:
        cleanup.run_cleanup()
    except (BotoCoreError, ClientError):
        # already logged by the collector
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
