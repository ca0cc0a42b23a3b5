import logging
import os

from roombook.utils.custom_exceptions import AuthError
from roombook.utils.jwt_service import authenticate

logger = logging.getLogger()
logger.setLevel(logging.INFO)

JWT_SECRET = os.environ.get("JWT_SECRET")
JWT_ALGORITHM = os.environ.get("JWT_ALGORITHM", "HS256")

if not JWT_SECRET:
    raise RuntimeError("JWT_SECRET environment variable is not set")


def _generate_policy(principal_id, effect, resource, context=None):
    auth_response = {
        "principalId": principal_id,
        "policyDocument": {
            "Version": "2012-10-17",
            "Statement": [
                {
                    "Action": "execute-api:Invoke",
                    "Effect": effect,
                    "Resource": resource,
                }
            ],
        },
    }

    if context:
        auth_response["context"] = {
            k: str(v) for k, v in context.items()
        }

    return auth_response


def _get_stage_arn(method_arn: str) -> str:
    parts = method_arn.split("/")
    return "/".join(parts[:2]) + "/*/*"


def _extract_token(event):
    headers = event.get("headers") or {}
    return (
        headers.get("Authorization")
        or headers.get("authorization")
        or event.get("authorizationToken")
    )


def lambda_handler(event, context):
    resource = _get_stage_arn(event["methodArn"])
    try:
        user_id = authenticate(_extract_token(event), JWT_SECRET, JWT_ALGORITHM)
    except AuthError as err:
        logger.info(f"Authorization failed: {err}")
        return _generate_policy(
            principal_id="unauthorized",
            effect="Deny",
            resource=resource,
        )

    return _generate_policy(
        principal_id=user_id,
        effect="Allow",
        resource=resource,
        context={"user_id": user_id},
    )
