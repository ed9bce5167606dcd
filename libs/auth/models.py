from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class AuthUser(BaseModel):
    """
    Claims of a Supabase access token.
    """

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="sub")
    email: Optional[EmailStr] = None
    role: str = "authenticated"
    app_metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def display_name(self) -> str:
        """Local part of the email, used in greetings."""
        if self.email:
            return self.email.split("@")[0]
        return self.user_id
