"""
API request and response models for the SmartBee REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
apiary/models.py, which own the internal domain representation. Route
handlers map between the two.

Field names: request bodies accept the English names and the legacy Spanish
names the existing front end sends (validation_alias with AliasChoices).
Responses keep the legacy Spanish keys so deployed clients keep working.

Request fields are Optional. Missing or blank required fields are
reported by auth.accounts / auth.login as a 400 naming the field, instead of
Pydantic's generic "field required" error.
"""

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from apiary.models import Hive
from auth.models import Account, AccountInput, Role

# ---------------------------------------------------------------------------
# Shared field definitions
# ---------------------------------------------------------------------------


def _name_field(*aliases: str, max_length: int = 100):
    return Field(default=None, max_length=max_length, validation_alias=AliasChoices(*aliases))


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /api/auth/login.

    Either identifier, or both given_name and family_name, plus secret.
    """

    identifier: Optional[str] = _name_field("identifier", "id", "email", max_length=64)
    given_name: Optional[str] = _name_field("given_name", "nombre")
    family_name: Optional[str] = _name_field("family_name", "apellido")
    secret: Optional[str] = _name_field("secret", "clave", "password", max_length=255)


class AccountSummary(BaseModel):
    """Public view of an account. Never carries password material."""

    model_config = ConfigDict(frozen=True)

    id: str
    nombre: str
    apellido: str
    comuna: str
    rol: str
    rol_nombre: str
    activo: int

    @classmethod
    def from_account(cls, account: Account) -> "AccountSummary":
        """Factory Method: the domain-to-wire mapping lives beside the wire model."""
        return cls(
            id=account.id,
            nombre=account.given_name,
            apellido=account.family_name,
            comuna=account.locality,
            rol=account.role,
            rol_nombre=account.role_name or "Usuario",
            activo=1 if account.active else 0,
        )


class LoginResponse(BaseModel):
    """Response body for a successful login."""

    model_config = ConfigDict(frozen=True)

    token: str
    usuario: AccountSummary


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


class AccountUpdate(BaseModel):
    """Request body for PUT /api/usuarios/{id}. secret is optional here."""

    given_name: Optional[str] = _name_field("given_name", "nombre")
    family_name: Optional[str] = _name_field("family_name", "apellido")
    locality: Optional[str] = _name_field("locality", "comuna")
    secret: Optional[str] = _name_field("secret", "clave", "password", max_length=255)
    role: Optional[str] = _name_field("role", "rol", max_length=10)
    active: Optional[bool] = Field(default=None, validation_alias=AliasChoices("active", "activo"))

    def to_input(self) -> AccountInput:
        return AccountInput(
            given_name=self.given_name,
            family_name=self.family_name,
            locality=self.locality,
            secret=self.secret,
            role=self.role,
            active=self.active,
        )


class AccountCreate(AccountUpdate):
    """Request body for POST /api/usuarios. id is generated when absent."""

    id: Optional[str] = _name_field("id", "identifier", max_length=64)

    def to_input(self) -> AccountInput:
        payload = super().to_input()
        payload.id = self.id
        return payload


class AccountOption(BaseModel):
    """One entry of the lightweight account picker list."""

    model_config = ConfigDict(frozen=True)

    id: str
    nombre: str
    apellido: str


class DeleteResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str
    id: str


class RoleResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    rol: str
    descripcion: str

    @classmethod
    def from_role(cls, role: Role) -> "RoleResponse":
        return cls(rol=role.code, descripcion=role.description)


# ---------------------------------------------------------------------------
# Hives
# ---------------------------------------------------------------------------


class HiveCreate(BaseModel):
    """Request body for POST /api/colmenas."""

    model_config = ConfigDict(str_strip_whitespace=True)

    owner: Optional[str] = _name_field("owner", "dueno", max_length=64)
    description: str = Field(default="", max_length=255, validation_alias=AliasChoices("description", "descripcion"))
    latitude: Optional[float] = Field(
        default=None, ge=-90, le=90, validation_alias=AliasChoices("latitude", "latitud")
    )
    longitude: Optional[float] = Field(
        default=None, ge=-180, le=180, validation_alias=AliasChoices("longitude", "longitud")
    )


class HiveResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    descripcion: str
    latitud: Optional[float]
    longitud: Optional[float]
    dueno: str

    @classmethod
    def from_hive(cls, hive: Hive) -> "HiveResponse":
        return cls(
            id=hive.id,
            descripcion=hive.description,
            latitud=hive.latitude,
            longitud=hive.longitude,
            dueno=hive.owner,
        )


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]


class ConnectionTestResponse(BaseModel):
    """Response for GET /api/test-connection."""

    model_config = ConfigDict(frozen=True)

    success: bool
    result: dict[str, str]
    message: str
