from typing import Optional
from sqlalchemy import select
from storefront.schema.full_schema import Users


async def identify_user_by_pid(session,user_pid) -> Optional[dict]:

    stmt=select(Users.id,Users.role).where(Users.public_id==user_pid,Users.deleted_at.is_(None))
    res=await session.execute(stmt)
    row=res.one_or_none()
    if not row:
        return None
    return {"user_id": row[0], "role": row[1]}


async def fetch_user_profile(session,user_id):
    stmt=select(Users.public_id,Users.email,Users.name,Users.role,Users.created_at).where(Users.id==user_id)
    res=await session.execute(stmt)
    row=res.one()
    return {
        "public_id": str(row.public_id),
        "email": row.email,
        "name": row.name,
        "role": row.role,
        "created_at": row.created_at,
    }
