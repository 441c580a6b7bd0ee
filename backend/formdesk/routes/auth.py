from fastapi import APIRouter, Depends, HTTPException, Request
import os
from sqlalchemy import func
from sqlalchemy.orm import Session
from ..database import get_db
from .. import models, schemas, audit
from ..auth import get_password_hash, verify_password, create_access_token
from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)
testing = os.getenv("TESTING") == "1"

def rate_limit(limit: str):
    if testing:
        def wrapper(func):
            return func
        return wrapper
    return limiter.limit(limit)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _token_for(user: models.User, tenant: models.Tenant) -> schemas.Token:
    return schemas.Token(
        access_token=create_access_token({"sub": str(user.id)}),
        user_id=user.id,
        name=user.name,
        role=user.role,
        tenant_id=tenant.id,
        tenant_name=tenant.name,
    )


@router.post("/register", response_model=schemas.Token)
@rate_limit("5/minute")
async def register(request: Request, user: schemas.UserCreate, db: Session = Depends(get_db)):
    email = user.email.lower()
    existing = db.query(models.User).filter(func.lower(models.User.email) == email).first()
    if existing:
        raise HTTPException(status_code=409, detail="Email already registered")
    # every self-registered user gets a fresh organization
    tenant = models.Tenant(name=f"{user.name}'s Organization")
    db.add(tenant)
    db.flush()
    db_user = models.User(
        tenant_id=tenant.id,
        email=email,
        name=user.name,
        hashed_password=get_password_hash(user.password),
        phone_number=user.phone_number,
        age=user.age,
        role=models.ROLE_EDITOR,
    )
    db.add(db_user)
    db.flush()
    audit.log_action(db, db_user.id, "register", "user", db_user.id, tenant_id=tenant.id)
    db.commit()
    db.refresh(db_user)
    return _token_for(db_user, tenant)


@router.post("/login", response_model=schemas.Token)
@rate_limit("10/minute")
async def login(request: Request, credentials: schemas.LoginRequest, db: Session = Depends(get_db)):
    email = credentials.email.lower()
    db_user = db.query(models.User).filter(func.lower(models.User.email) == email).first()
    if not db_user or not verify_password(credentials.password, db_user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    audit.log_action(db, db_user.id, "login", "user", db_user.id, tenant_id=db_user.tenant_id)
    db.commit()
    return _token_for(db_user, db_user.tenant)
