from typing import Annotated
from fastapi import Depends
from pos_api.modules.auth.utils import get_current_user
from pos_api.modules.auth.models import User

user_dependency = Annotated[User, Depends(get_current_user)]
