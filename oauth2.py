from jose import jwt, JWTError
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
import schemas
from config import settings

# tokens are issued by the external auth service, this service only verifies them
oauth2_scheme = OAuth2PasswordBearer(tokenUrl='/auth/login')


def verify_access_token(token: str, credentials_exception):
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
        id = payload.get("user_id")
        role = payload.get("role")
        if not id or role not in ("doctor", "patient"):
            raise credentials_exception
        token = schemas.TokenData(id=id, role=role)
    except JWTError:
        raise credentials_exception
    return token

def get_current_user(token: str = Depends(oauth2_scheme)):
    credentials_exception = HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                                          detail=f"Could not validate credentials", headers={"WWW-Authenticate": "Bearer"})
    return verify_access_token(token, credentials_exception)
