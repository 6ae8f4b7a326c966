"""Form schemas.

Each form is a pydantic model.  :func:`validate` runs a form against raw
input (strings typed at a prompt, or dicts built by the screens), keeps the
first failure per field and raises a single
:class:`~club.errors.ValidationError` carrying the portal's own messages::

    cleaned = validate(RECHARGE_SCHEMA, {'amount': '100', 'paymentMethod': 'paypal'})
    cleaned['amount']   # -> 100.0

Blank strings count as missing.  Non-finite numbers (``nan``, ``inf``) are
rejected like any other non-number.
"""
import re
from typing import Annotated, Any, ClassVar, Dict, Literal, Optional, Tuple, Type, get_args

from pydantic import BaseModel, EmailStr, Field, StringConstraints, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError

PHONE_RE = re.compile(r'\d{10}')
EMAIL_RE = re.compile(r'[^\s@]+@[^\s@]+\.[^\s@]+')

Role = Literal['USER', 'ADMIN']
PaymentMethod = Literal['credit_card', 'debit_card', 'paypal', 'bank_transfer']
GameGenre = Literal[
    'action', 'adventure', 'rpg', 'strategy', 'simulation',
    'sports', 'racing', 'puzzle', 'arcade', 'fighting',
]
GameStatus = Literal['active', 'inactive', 'coming_soon']
ProductCategory = Literal[
    'accessories', 'hardware', 'software', 'merchandise',
    'gift_cards', 'subscriptions',
]

ROLES: Tuple[str, ...] = get_args(Role)
PAYMENT_METHODS: Tuple[str, ...] = get_args(PaymentMethod)
GAME_GENRES: Tuple[str, ...] = get_args(GameGenre)
GAME_STATUSES: Tuple[str, ...] = get_args(GameStatus)
PRODUCT_CATEGORIES: Tuple[str, ...] = get_args(ProductCategory)

# ---------------------------------------------------------------------------
# Field types
# ---------------------------------------------------------------------------

Phone = Annotated[str, StringConstraints(strip_whitespace=True, pattern=r'^\d{10}$')]
Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=50)]
Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=100)]
Description = Annotated[str, StringConstraints(strip_whitespace=True, min_length=10, max_length=500)]
Tags = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2)]
Password = Annotated[str, StringConstraints(min_length=6)]
Amount = Annotated[float, Field(ge=1, le=10000, allow_inf_nan=False)]
Balance = Annotated[float, Field(ge=0, allow_inf_nan=False)]
GamePrice = Annotated[float, Field(ge=0, le=1000, allow_inf_nan=False)]
ProductPrice = Annotated[float, Field(ge=0, le=5000, allow_inf_nan=False)]
Stock = Annotated[int, Field(ge=0, le=10000)]

# pydantic error type -> message key used in FormModel.messages
_ERROR_KINDS = {
    'missing': 'required',
    'string_type': 'format',
    'string_pattern_mismatch': 'format',
    'value_error': 'format',
    'string_too_short': 'min_length',
    'string_too_long': 'max_length',
    'float_type': 'number',
    'float_parsing': 'number',
    'finite_number': 'number',
    'int_type': 'number',
    'int_parsing': 'number',
    'int_from_float': 'integer',
    'greater_than_equal': 'min',
    'less_than_equal': 'max',
    'literal_error': 'choice',
    'bool_type': 'boolean',
    'bool_parsing': 'boolean',
}


class FormModel(BaseModel):
    """Base for the portal forms.

    ``messages`` maps field -> message key (see ``_ERROR_KINDS``) -> text
    shown next to the field.  Unmapped failures fall back to pydantic's
    own message.
    """

    messages: ClassVar[Dict[str, Dict[str, str]]] = {}


# ---------------------------------------------------------------------------
# Shared field messages
# ---------------------------------------------------------------------------

PHONE_MESSAGES = {
    'required': 'Phone number is required',
    'format': 'Phone number must be exactly 10 digits',
}
EMAIL_MESSAGES = {
    'required': 'Email is required',
    'format': 'Invalid email format',
}
NAME_MESSAGES = {
    'required': 'Name is required',
    'min_length': 'Name must be at least 2 characters',
    'max_length': 'Name must be less than 50 characters',
}
ROLE_MESSAGES = {
    'required': 'Role is required',
    'choice': 'Invalid role',
}
PASSWORD_MESSAGES = {
    'required': 'Password is required',
    'min_length': 'Password must be at least 6 characters',
}
DESCRIPTION_MESSAGES = {
    'required': 'Description is required',
    'min_length': 'Description must be at least 10 characters',
    'max_length': 'Description must be less than 500 characters',
}


# ---------------------------------------------------------------------------
# Forms
# ---------------------------------------------------------------------------

class LoginForm(FormModel):
    phoneNumber: Phone
    role: Role

    messages = {'phoneNumber': PHONE_MESSAGES, 'role': ROLE_MESSAGES}


class RegisterForm(FormModel):
    name: Name
    phoneNumber: Phone
    email: EmailStr
    role: Role

    messages = {
        'name': NAME_MESSAGES,
        'phoneNumber': PHONE_MESSAGES,
        'email': EMAIL_MESSAGES,
        'role': ROLE_MESSAGES,
    }


class PhoneSearchForm(FormModel):
    phone: Phone

    messages = {'phone': PHONE_MESSAGES}


class ChangePasswordForm(FormModel):
    oldPassword: str
    newPassword: Password

    messages = {
        'oldPassword': {'required': 'Current password is required'},
        'newPassword': PASSWORD_MESSAGES,
    }


class RechargeForm(FormModel):
    amount: Amount
    paymentMethod: PaymentMethod

    messages = {
        'amount': {
            'required': 'Amount is required',
            'number': 'Amount must be a number',
            'min': 'Minimum amount is $1',
            'max': 'Maximum amount is $10,000',
        },
        'paymentMethod': {
            'required': 'Payment method is required',
            'choice': 'Invalid payment method',
        },
    }


class GameForm(FormModel):
    name: Title
    price: GamePrice
    description: Description
    genre: GameGenre
    status: GameStatus

    messages = {
        'name': {
            'required': 'Game name is required',
            'min_length': 'Game name must be at least 2 characters',
            'max_length': 'Game name must be less than 100 characters',
        },
        'price': {
            'required': 'Price is required',
            'number': 'Price must be a number',
            'min': 'Price cannot be negative',
            'max': 'Maximum price is $1,000',
        },
        'description': DESCRIPTION_MESSAGES,
        'genre': {'required': 'Genre is required', 'choice': 'Invalid genre'},
        'status': {'required': 'Status is required', 'choice': 'Invalid status'},
    }


class ProductForm(FormModel):
    name: Title
    description: Description
    category: ProductCategory
    tags: Tags
    price: ProductPrice
    stock: Stock

    messages = {
        'name': {
            'required': 'Product name is required',
            'min_length': 'Product name must be at least 2 characters',
            'max_length': 'Product name must be less than 100 characters',
        },
        'description': DESCRIPTION_MESSAGES,
        'category': {'required': 'Category is required', 'choice': 'Invalid category'},
        'tags': {'required': 'Tags are required', 'min_length': 'At least one tag is required'},
        'price': {
            'required': 'Price is required',
            'number': 'Price must be a number',
            'min': 'Price cannot be negative',
            'max': 'Maximum price is $5,000',
        },
        'stock': {
            'required': 'Stock is required',
            'number': 'Stock must be a number',
            'integer': 'Stock must be a whole number',
            'min': 'Stock cannot be negative',
            'max': 'Maximum stock is 10,000',
        },
    }


class MemberForm(FormModel):
    name: Name
    phoneNumber: Phone
    email: EmailStr
    balance: Balance
    isActive: bool

    messages = {
        'name': NAME_MESSAGES,
        'phoneNumber': PHONE_MESSAGES,
        'email': EMAIL_MESSAGES,
        'balance': {
            'required': 'Balance is required',
            'number': 'Balance must be a number',
            'min': 'Balance cannot be negative',
        },
        'isActive': {
            'required': 'Active status is required',
            'boolean': 'Active status must be true or false',
        },
    }


LOGIN_SCHEMA = LoginForm
REGISTER_SCHEMA = RegisterForm
PHONE_SEARCH_SCHEMA = PhoneSearchForm
CHANGE_PASSWORD_SCHEMA = ChangePasswordForm
RECHARGE_SCHEMA = RechargeForm
GAME_SCHEMA = GameForm
PRODUCT_SCHEMA = ProductForm
MEMBER_SCHEMA = MemberForm


# ---------------------------------------------------------------------------
# Running a form
# ---------------------------------------------------------------------------

_field_adapters: Dict[Tuple[Type[FormModel], str], TypeAdapter] = {}


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _message(schema: Type[FormModel], field: str, error: Dict[str, Any]) -> str:
    kind = _ERROR_KINDS.get(error['type'])
    return schema.messages.get(field, {}).get(kind) or error['msg']


def _field_adapter(schema: Type[FormModel], field: str) -> TypeAdapter:
    key = (schema, field)
    if key not in _field_adapters:
        _field_adapters[key] = TypeAdapter(schema.__annotations__[field])
    return _field_adapters[key]


def _validate_partial(schema: Type[FormModel], data: Dict[str, Any]) -> Tuple[Dict, Dict]:
    """Validate only the fields present in *data*, one at a time."""
    values: Dict[str, Any] = {}
    errors: Dict[str, str] = {}
    for field in schema.model_fields:
        if field not in data:
            continue
        if _is_blank(data[field]):
            errors[field] = _message(schema, field, {'type': 'missing', 'msg': 'Field required'})
            continue
        try:
            values[field] = _field_adapter(schema, field).validate_python(data[field])
        except PydanticValidationError as exc:
            errors[field] = _message(schema, field, exc.errors()[0])
    return values, errors


def _validate_full(schema: Type[FormModel], data: Dict[str, Any]) -> Tuple[Dict, Dict]:
    payload = {k: v for k, v in data.items() if not _is_blank(v)}
    try:
        return schema.model_validate(payload).model_dump(), {}
    except PydanticValidationError as exc:
        errors: Dict[str, str] = {}
        for error in exc.errors():
            field = str(error['loc'][0]) if error['loc'] else ''
            errors.setdefault(field, _message(schema, field, error))
        return {}, errors


def validate(schema: Type[FormModel], data: Dict[str, Any],
             partial: bool = False) -> Dict[str, Any]:
    """Validate *data* against the form *schema* and return the cleaned values.

    Fields not named in *schema* are passed through untouched.  With
    ``partial=True`` fields absent from *data* are skipped instead of
    failing as required (used for updates).

    Raises:
        ValidationError: when at least one field fails; ``errors`` holds the
            first message per field.
    """
    if partial:
        values, errors = _validate_partial(schema, data)
    else:
        values, errors = _validate_full(schema, data)
    if errors:
        raise ValidationError(errors)
    cleaned = dict(data)
    cleaned.update(values)
    return cleaned


def field_errors(schema: Type[FormModel], data: Dict[str, Any]) -> Dict[str, str]:
    """Return ``{field: message}`` for *data* without raising (empty when valid)."""
    try:
        validate(schema, data)
    except ValidationError as exc:
        return exc.errors
    return {}


# ---------------------------------------------------------------------------
# Stand-alone predicates
# ---------------------------------------------------------------------------

def validate_phone_number(phone: Optional[str]) -> bool:
    return bool(phone) and PHONE_RE.fullmatch(phone) is not None


def validate_email(email: Optional[str]) -> bool:
    return bool(email) and EMAIL_RE.fullmatch(email) is not None


def validate_amount(amount: float) -> bool:
    return 0 < amount <= 10000


def validate_password(password: Optional[str]) -> bool:
    return bool(password) and len(password) >= 6


def get_validation_message(error: Any) -> str:
    """Extract a displayable message from a string, exception or error dict."""
    if isinstance(error, str):
        return error
    message = getattr(error, 'message', None)
    if message is None and isinstance(error, dict):
        message = error.get('message')
    if message:
        return str(message)
    return 'Invalid input'
