"""Authorization decisions and platform role assignment."""

from collections.abc import Callable
from uuid import UUID

from core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ErrorCode,
    InsufficientPermissionsError,
    MalformedEntityError,
    OrgNotFoundError,
    RoleNotFoundError,
)
from domain.entities.key import Identity, KeyType
from domain.entities.org import Org, OrgRole, has_permission, parse_org_role
from domain.entities.role import AuthzRequest, AuthzSubject, PlatformRole, RoleAssignment
from domain.repositories.unit_of_work import IUnitOfWork
from infrastructure.auth.provider import ITokenCodec


def parse_uuid(value: str, field: str = "id") -> UUID:
    """Parse an identifier, raising MalformedEntityError on bad input."""
    try:
        return UUID(str(value))
    except ValueError:
        raise MalformedEntityError(
            message=f"Malformed {field}: {value}",
            details={field: value},
        ) from None


class Authorizer:
    """Access checks evaluated inside the caller's unit of work."""

    def __init__(self, codec: ITokenCodec) -> None:
        self._codec = codec

    async def identify(
        self, uow: IUnitOfWork, token: str, *, login_only: bool = False
    ) -> Identity:
        """Resolve a secret to the identity of its issuer.

        The stored key row is authoritative: a key whose row is gone has been
        revoked, and ``expires_at <= now`` is expired. Expired API keys are
        removed and the removal is committed before the error is raised.

        Raises:
            AuthenticationError: If the key is malformed, unknown, revoked or expired.
        """
        if not token:
            raise AuthenticationError()

        claims = self._codec.decode(token)
        if claims.issuer_id is None:
            raise AuthenticationError(error_code=ErrorCode.INVALID_TOKEN)
        if login_only and claims.type != KeyType.LOGIN:
            raise AuthenticationError(
                message="A login key is required",
                error_code=ErrorCode.INVALID_TOKEN,
            )

        key = await uow.keys.retrieve(claims.issuer_id, claims.id)
        if not key:
            raise AuthenticationError(
                message="Invalid or expired token",
                error_code=ErrorCode.INVALID_TOKEN,
            )
        if key.is_expired():
            if key.type == KeyType.API:
                await uow.keys.remove(claims.issuer_id, claims.id)
                await uow.commit()
            raise AuthenticationError(
                message="Token expired",
                error_code=ErrorCode.TOKEN_EXPIRED,
            )

        return Identity(id=key.issuer_id, email=key.subject)  # type: ignore[arg-type]

    async def platform_role(self, uow: IUnitOfWork, user_id: UUID) -> PlatformRole | None:
        """Get the user's platform role, None when unassigned."""
        return await uow.roles.retrieve(user_id)  # type: ignore[no-any-return]

    async def is_root_admin(self, uow: IUnitOfWork, user_id: UUID) -> bool:
        """Check whether the user holds the root platform role."""
        return await self.platform_role(uow, user_id) == PlatformRole.ROOT_ADMIN

    async def require_root_admin(self, uow: IUnitOfWork, identity: Identity) -> None:
        """Raise AuthorizationError unless the user is the root admin."""
        if not await self.is_root_admin(uow, identity.id):
            raise AuthorizationError("Root admin role required")

    async def require_platform_admin(self, uow: IUnitOfWork, identity: Identity) -> None:
        """Raise AuthorizationError unless the user holds any platform role."""
        if await self.platform_role(uow, identity.id) is None:
            raise AuthorizationError("Platform admin role required")

    async def require_org_role(
        self,
        uow: IUnitOfWork,
        org_id: UUID,
        identity: Identity,
        required_role: OrgRole,
    ) -> Org:
        """Verify the user has at least the required org role. Root admin always passes.

        Returns:
            The org the check was made against.

        Raises:
            OrgNotFoundError: If the org does not exist.
            AuthorizationError: If the user is not a member.
            InsufficientPermissionsError: If the member's role is too low.
        """
        org = await uow.orgs.retrieve(org_id)
        if not org:
            raise OrgNotFoundError(str(org_id))

        if await self.is_root_admin(uow, identity.id):
            return org  # type: ignore[no-any-return]

        role = await uow.memberships.retrieve_role(org_id, identity.id)
        if not role:
            raise AuthorizationError("You are not a member of this org")
        if not has_permission(parse_org_role(role), required_role):
            raise InsufficientPermissionsError(required_role.label)
        return org  # type: ignore[no-any-return]


class AuthzService:
    """Single authorization decision point and platform role assignment."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        authorizer: Authorizer,
    ) -> None:
        self._uow_factory = uow_factory
        self._authorizer = authorizer

    async def authorize(self, request: AuthzRequest) -> None:
        """Decide whether the token holder may perform the requested action.

        Read-only: nothing is committed.

        Raises:
            AuthenticationError: If the token is not valid.
            AuthorizationError: If the action is not permitted.
            MalformedEntityError: If the subject, object or action is malformed.
        """
        async with self._uow_factory() as uow:
            identity = await self._authorizer.identify(uow, request.token)

            if request.subject == AuthzSubject.ROOT:
                await self._authorizer.require_root_admin(uow, identity)
                return

            if request.subject == AuthzSubject.ORG:
                org_id = parse_uuid(request.object, "org_id")
                required = parse_org_role(request.action or OrgRole.VIEWER.label)
                await self._authorizer.require_org_role(uow, org_id, identity, required)
                return

            raise MalformedEntityError(
                message=f"Unknown authorization subject: {request.subject}",
                details={"subject": request.subject},
            )

    async def assign_role(self, user_id: UUID, role: str) -> None:
        """Assign a platform role to a user.

        Raises:
            MalformedEntityError: If the role is unknown.
            ConflictError: If the user already has a role.
        """
        assignment = RoleAssignment(user_id=user_id, role=self._parse_role(role))
        async with self._uow_factory() as uow:
            await uow.roles.save(assignment)
            await uow.commit()

    async def retrieve_role(self, user_id: UUID) -> str:
        """Get the user's platform role, empty string when unassigned."""
        async with self._uow_factory() as uow:
            role = await uow.roles.retrieve(user_id)
            return role.value if role else ""

    async def update_role(self, user_id: UUID, role: str) -> None:
        """Replace the user's platform role.

        Raises:
            RoleNotFoundError: If the user has no role to update.
        """
        assignment = RoleAssignment(user_id=user_id, role=self._parse_role(role))
        async with self._uow_factory() as uow:
            if not await uow.roles.update(assignment):
                raise RoleNotFoundError(str(user_id))
            await uow.commit()

    async def remove_role(self, user_id: UUID) -> None:
        """Remove the user's platform role. Removing an absent role succeeds."""
        async with self._uow_factory() as uow:
            await uow.roles.remove(user_id)
            await uow.commit()

    @staticmethod
    def _parse_role(role: str) -> PlatformRole:
        try:
            return PlatformRole(role)
        except ValueError:
            raise MalformedEntityError(
                message=f"Invalid platform role: {role}",
                error_code=ErrorCode.INVALID_ROLE,
                details={"role": role},
            ) from None
