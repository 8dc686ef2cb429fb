# loginpage/services/users.py
import logging
from functools import lru_cache
from typing import Optional, Protocol

from azure.cosmos import ContainerProxy, CosmosClient
from azure.cosmos import exceptions as cosmos_exceptions
from fastapi import Depends
from sqlalchemy.orm import Session

from loginpage.core.config import settings
from loginpage.core.db import get_db
from loginpage.models.user import User
from loginpage.schemas.user import USER_TYPE, UserDocument

logger = logging.getLogger(__name__)


class UserRepository(Protocol):
    def get_by_email(self, email: str) -> Optional[UserDocument]: ...

    def get_by_token(self, token: str) -> Optional[UserDocument]: ...

    def create(self, user: UserDocument) -> UserDocument: ...

    def replace(self, user: UserDocument) -> UserDocument: ...


class SqlUserRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_email(self, email: str) -> Optional[UserDocument]:
        row = self.db.query(User).filter(User.email == email).first()
        return UserDocument.model_validate(row) if row else None

    def get_by_token(self, token: str) -> Optional[UserDocument]:
        row = self.db.query(User).filter(User.verification_token == token).first()
        return UserDocument.model_validate(row) if row else None

    def create(self, user: UserDocument) -> UserDocument:
        row = User(**user.model_dump())
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return UserDocument.model_validate(row)

    def replace(self, user: UserDocument) -> UserDocument:
        row = self.db.get(User, user.id)
        if row is None:
            raise LookupError(f"user {user.id} not found")
        for field, value in user.model_dump(exclude={"id"}).items():
            setattr(row, field, value)
        self.db.commit()
        self.db.refresh(row)
        return UserDocument.model_validate(row)


class CosmosUserRepository:
    def __init__(self, container: ContainerProxy):
        self.container = container

    def _first(self, query: str, name: str, value: str) -> Optional[UserDocument]:
        items = self.container.query_items(
            query=query,
            parameters=[{"name": name, "value": value}],
            partition_key=USER_TYPE,
        )
        for item in items:
            return UserDocument.model_validate(item)
        return None

    def get_by_email(self, email: str) -> Optional[UserDocument]:
        return self._first("SELECT * FROM c WHERE c.email = @email", "@email", email)

    def get_by_token(self, token: str) -> Optional[UserDocument]:
        return self._first("SELECT * FROM c WHERE c.verificationToken = @token", "@token", token)

    def create(self, user: UserDocument) -> UserDocument:
        created = self.container.create_item(body=user.to_document())
        return UserDocument.model_validate(created)

    def replace(self, user: UserDocument) -> UserDocument:
        replaced = self.container.replace_item(item=user.id, body=user.to_document())
        return UserDocument.model_validate(replaced)


@lru_cache(maxsize=1)
def get_cosmos_client() -> CosmosClient:
    if not settings.COSMOS_CONNECTION_STRING:
        raise RuntimeError("COSMOS_CONNECTION_STRING is missing")
    return CosmosClient.from_connection_string(
        settings.COSMOS_CONNECTION_STRING,
        connection_timeout=settings.COSMOS_REQUEST_TIMEOUT_SECONDS,
        retry_total=settings.COSMOS_MAX_RETRY_ATTEMPTS,
        retry_backoff_max=settings.COSMOS_MAX_RETRY_WAIT_SECONDS,
    )


def get_users_container() -> ContainerProxy:
    database = get_cosmos_client().get_database_client(settings.COSMOS_DATABASE)
    return database.get_container_client(settings.COSMOS_CONTAINER)


def check_cosmos_container() -> None:
    """Fail fast at startup when the users container can't be reached."""
    try:
        get_users_container().read()
    except cosmos_exceptions.CosmosHttpResponseError as e:
        logger.error("Cosmos DB error: %s - %s", e.status_code, e.message)
        raise
    logger.info(
        "Connected to Cosmos DB container %s/%s",
        settings.COSMOS_DATABASE,
        settings.COSMOS_CONTAINER,
    )


def get_user_repository(db: Session = Depends(get_db)) -> UserRepository:
    if settings.COSMOS_CONNECTION_STRING:
        return CosmosUserRepository(get_users_container())
    return SqlUserRepository(db)
