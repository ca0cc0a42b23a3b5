from botocore.exceptions import BotoCoreError, ClientError
import logging
from typing import Optional
from roombook.models.users import User
from roombook.utils.constants import DETAILS_SK
from roombook.utils.custom_exceptions import StoreUnavailable

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types_boto3_dynamodb.service_resource import Table
    from types_boto3_dynamodb import DynamoDBClient
else:
    Table = object
    DynamoDBClient = object

logger = logging.getLogger(__name__)


class UserRepository:
    def __init__(self, table: Table, client: DynamoDBClient = None):
        self.table = table
        self.client = client if client else table.meta.client

    def add_user(self, user: User):
        try:
            self.client.transact_write_items(
                TransactItems=[
                    {
                        "Put": {
                            "TableName": self.table.name,
                            "Item": {
                                "pk": f"EMAIL#{user.email}",
                                "sk": f"USER#{user.user_id}",
                            },
                            "ConditionExpression": "attribute_not_exists(pk)",
                        }
                    },
                    {
                        "Put": {
                            "TableName": self.table.name,
                            "Item": {
                                "pk": f"USER#{user.user_id}",
                                "sk": DETAILS_SK,
                                "name": user.name,
                                "email": user.email,
                                "mobile_number": user.mobile_number,
                            },
                            "ConditionExpression": "attribute_not_exists(pk)",
                        }
                    },
                ]
            )

        except ClientError as err:
            logger.error(
                "couldn't add user %s. Error: %s",
                user.email,
                err.response["Error"]["Message"],
            )
            raise

    def get_by_id(self, user_id: str) -> Optional[User]:
        try:
            response = self.table.get_item(
                Key={"pk": f"USER#{user_id}", "sk": DETAILS_SK}
            )
        except (ClientError, BotoCoreError) as err:
            logger.error(f"Error retrieving user by id {user_id}: {err}")
            raise StoreUnavailable("could not read user") from err

        item = response.get("Item")
        if not item:
            return None

        return self._to_domain(item=item)

    @staticmethod
    def _to_domain(item: dict) -> User:
        return User(
            user_id=item["pk"].split("#", 1)[1],
            name=item["name"],
            email=item["email"],
            mobile_number=item.get("mobile_number"),
        )
