from typing import Annotated

from sqlalchemy import ForeignKey
from sqlalchemy.orm import mapped_column

PrimaryKeyStr = Annotated[
    str,
    mapped_column(primary_key=True),
]
ForeignKeyUserId = Annotated[
    str,
    mapped_column(ForeignKey("users.id"), index=True),
]
ForeignKeyPoolId = Annotated[
    str,
    mapped_column(ForeignKey("rwa_pools.id"), index=True),
]
