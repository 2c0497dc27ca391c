from fastapi import Depends, Request

from config.settings import Settings
from infrastructure.db.sqlite import Database, SQLiteTransactionRepository, SQLiteUserRepository


def get_settings(request: Request) -> Settings:
    return request.app.state.settings

def get_db(request: Request) -> Database:
    return request.app.state.database

def get_user_repo(db: Database = Depends(get_db)) -> SQLiteUserRepository:
    return SQLiteUserRepository(db)

def get_transaction_repo(db: Database = Depends(get_db)) -> SQLiteTransactionRepository:
    return SQLiteTransactionRepository(db)
