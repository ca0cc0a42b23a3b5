from botocore.exceptions import BotoCoreError, ClientError
import logging
from typing import Optional
from decimal import Decimal
from roombook.models.rooms import Room
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


class RoomRepository:
    def __init__(self, table: Table, client: DynamoDBClient = None):
        self.table = table
        self.client = client if client else table.meta.client

    def add_room(self, room: Room):
        try:
            self.table.put_item(
                Item={
                    "pk": f"ROOM#{room.room_id}",
                    "sk": DETAILS_SK,
                    "name": room.name,
                    "price_per_hour": Decimal(str(room.price_per_hour)),
                    "capacity": room.capacity,
                    "facilities": list(room.facilities),
                },
                ConditionExpression="attribute_not_exists(pk)",
            )
        except ClientError as err:
            logger.error(f"Error creating room {room.room_id}: {err}")
            raise

    def get_room_by_id(self, room_id: str) -> Optional[Room]:
        try:
            response = self.table.get_item(
                Key={"pk": f"ROOM#{room_id}", "sk": DETAILS_SK}
            )
        except (ClientError, BotoCoreError) as err:
            logger.error(f"Error retrieving room by id {room_id}: {err}")
            raise StoreUnavailable("could not read room") from err

        item = response.get("Item")
        if not item:
            return None
        return Room(
            room_id=room_id,
            name=item["name"],
            price_per_hour=Decimal(str(item["price_per_hour"])),
            capacity=int(item.get("capacity", 1)),
            facilities=list(item.get("facilities", [])),
        )
