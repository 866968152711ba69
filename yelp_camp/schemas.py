"""Form validation models.

Views validate the sanitized request body against these models; any
failure becomes a 400 :class:`~yelp_camp.exceptions.AppError` whose message
lists the offending fields.
"""

from typing import Annotated, Any, Optional, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    ValidationError,
    field_validator,
)

from yelp_camp.exceptions import AppError

TITLE_MAX_LENGTH = 200
IMAGE_URL_MAX_LENGTH = 2048
RATING_MIN = 1
RATING_MAX = 5

FormModel = TypeVar("FormModel", bound=BaseModel)


class _Form(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")


class CampgroundForm(_Form):
    """Fields submitted as ``campground[...]``."""

    title: Annotated[str, Field(min_length=1, max_length=TITLE_MAX_LENGTH)]
    price: Annotated[float, Field(ge=0)]
    image: Annotated[Optional[str], Field(max_length=IMAGE_URL_MAX_LENGTH)] = None
    location: Annotated[str, Field(min_length=1, max_length=200)]
    description: Annotated[str, Field(min_length=1)]

    @field_validator("image")
    @classmethod
    def validate_image(cls, v: Optional[str]) -> Optional[str]:
        """Blank means no image; anything else must be an http(s) URL."""
        if not v:
            return None
        if not v.startswith(("http://", "https://")):
            raise ValueError("Image must be an http or https URL")
        return v


class ReviewForm(_Form):
    """Fields submitted as ``review[...]``."""

    body: Annotated[str, Field(min_length=1)]
    rating: Annotated[int, Field(ge=RATING_MIN, le=RATING_MAX)]


class RegisterForm(_Form):
    username: Annotated[str, Field(min_length=1, max_length=64)]
    email: EmailStr
    password: Annotated[str, Field(min_length=1)]

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


def _describe(error: dict[str, Any]) -> str:
    field = ".".join(str(loc) for loc in error["loc"])
    return f"{field}: {error['msg']}" if field else error["msg"]


def validate_form(schema: type[FormModel], data: Any, name: str) -> FormModel:
    """Validate ``data`` submitted under the form name ``name``.

    Args:
        schema: Model to validate against.
        data: The nested mapping from the request body, e.g. ``body["campground"]``.
        name: Form name used in error messages.

    Returns:
        Validated model instance.

    Raises:
        AppError: (400) if ``data`` is missing or invalid.
    """
    if not isinstance(data, dict):
        raise AppError(f'"{name}" is required', 400)
    try:
        return schema.model_validate(data)
    except ValidationError as exc:
        message = ", ".join(f"{name}.{_describe(e)}" for e in exc.errors())
        raise AppError(message, 400) from exc
