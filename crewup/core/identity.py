# 호출자 식별: 인증은 앞단(게이트웨이/세션)에서 끝났다고 가정하고 X-User-Id 헤더만 읽는다
from fastapi import Header, HTTPException


def get_caller_id(x_user_id: str = Header(..., min_length=1, max_length=64)) -> str:
    caller_id = x_user_id.strip()
    if not caller_id:
        raise HTTPException(status_code=401, detail="Missing caller id")
    return caller_id
