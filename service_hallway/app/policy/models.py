"""
Policy data models for the Hallway service.

These mirror the access-policy section of the proxy configuration
(``pomerium.yaml``). Each model knows how to evaluate itself against a
visitor's email and how to report the literals it mentions, which is how
the set of known identities is discovered.
"""

from typing import Annotated, Any, ClassVar, List, Literal, Optional, Set, Union

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    RootModel,
    field_validator,
    model_validator,
)

from shared.logging import get_logger

from .result import PolicyResult

logger = get_logger("hallway.policy")


class StringMatcher(BaseModel):
    """String conditions; every condition that is present must hold."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    is_: Optional[str] = Field(default=None, alias="is")
    starts_with: Optional[str] = None
    ends_with: Optional[str] = None
    contains: Optional[str] = None

    def matches(self, value: str) -> bool:
        if self.is_ is not None and value != self.is_:
            return False
        if self.starts_with is not None and not value.startswith(self.starts_with):
            return False
        if self.ends_with is not None and not value.endswith(self.ends_with):
            return False
        if self.contains is not None and self.contains not in value:
            return False
        return True

    def literals(self) -> List[str]:
        return [
            literal
            for literal in (self.is_, self.starts_with, self.ends_with, self.contains)
            if literal is not None
        ]


class UserCriterion(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["user"] = "user"
    user: StringMatcher

    def matches(self, email: str) -> bool:
        # The proxy identifies users by email, so both fields see the same value
        return self.user.matches(email)

    def literals(self) -> List[str]:
        return self.user.literals()


class EmailCriterion(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["email"] = "email"
    email: StringMatcher

    def matches(self, email: str) -> bool:
        return self.email.matches(email)

    def literals(self) -> List[str]:
        return self.email.literals()


class AcceptCriterion(BaseModel):
    """Matches everyone. The payload (``accept: true``) is not inspected."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["accept"] = "accept"
    accept: Any = None

    def matches(self, email: str) -> bool:
        return True

    def literals(self) -> List[str]:
        return []


_CRITERION_KINDS = ("user", "email", "accept")


def _tag_criterion(raw: Any) -> Any:
    """Pick the criterion variant from the key present in an untagged record."""
    if isinstance(raw, BaseModel) or not isinstance(raw, dict):
        return raw
    for kind in _CRITERION_KINDS:
        if kind in raw:
            return {**raw, "kind": kind}
    raise ValueError(
        f"Unsupported policy criterion with keys {sorted(raw)}; "
        f"expected one of {', '.join(_CRITERION_KINDS)}"
    )


Criterion = Annotated[
    Union[UserCriterion, EmailCriterion, AcceptCriterion],
    Field(discriminator="kind"),
    BeforeValidator(_tag_criterion),
]


class CriteriaGroup(RootModel[List[Criterion]]):
    """A list of criteria folded into one result.

    An empty list yields ``EMPTY`` so that an unconfigured combinator does
    not sway the merge in ``ActionOperator``.
    """

    model_config = ConfigDict(frozen=True)

    require_all: ClassVar[bool] = False
    inverted: ClassVar[bool] = False

    root: List[Criterion] = Field(default_factory=list)

    @field_validator("root", mode="before")
    @classmethod
    def _null_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    def check_authorized(self, email: str) -> PolicyResult:
        if not self.root:
            return PolicyResult.EMPTY
        outcomes = (criterion.matches(email) != self.inverted for criterion in self.root)
        passed = all(outcomes) if self.require_all else any(outcomes)
        return PolicyResult.from_bool(passed)

    def extract_emails(self, into: Set[str]) -> None:
        for criterion in self.root:
            into.update(criterion.literals())


class OrGroup(CriteriaGroup):
    """Passes when any criterion matches."""


class AndGroup(CriteriaGroup):
    """Passes when every criterion matches."""

    require_all = True


class NotGroup(CriteriaGroup):
    """Passes when no criterion matches."""

    require_all = True
    inverted = True


class NorGroup(CriteriaGroup):
    """Passes when at least one criterion does not match."""

    inverted = True


class _NullableModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _null_is_empty(cls, value: Any) -> Any:
        return {} if value is None else value


class ActionOperator(_NullableModel):
    """The four combinators, merged with priority OR."""

    or_: OrGroup = Field(default_factory=OrGroup, alias="or")
    and_: AndGroup = Field(default_factory=AndGroup, alias="and")
    not_: NotGroup = Field(default_factory=NotGroup, alias="not")
    nor: NorGroup = Field(default_factory=NorGroup)

    def check_authorized(self, email: str) -> PolicyResult:
        or_result = self.or_.check_authorized(email)
        and_result = self.and_.check_authorized(email)
        not_result = self.not_.check_authorized(email)
        nor_result = self.nor.check_authorized(email)

        logger.debug(
            "Operator evaluated",
            email=email,
            or_result=str(or_result),
            and_result=str(and_result),
            not_result=str(not_result),
            nor_result=str(nor_result),
        )
        return or_result + and_result + not_result + nor_result

    def extract_emails(self, into: Set[str]) -> None:
        for group in (self.or_, self.and_, self.not_, self.nor):
            group.extract_emails(into)


class PolicyAction(_NullableModel):
    """An allow/deny pair. A matching deny turns the action into NOT_PASSED."""

    allow: ActionOperator = Field(default_factory=ActionOperator)
    deny: ActionOperator = Field(default_factory=ActionOperator)

    def check_authorized(self, email: str) -> PolicyResult:
        allowed = self.allow.check_authorized(email)
        denied = self.deny.check_authorized(email)

        logger.debug("Action evaluated", email=email, allowed=str(allowed), denied=str(denied))
        return allowed + ~denied

    def extract_emails(self, into: Set[str]) -> None:
        self.allow.extract_emails(into)
        self.deny.extract_emails(into)


class Policy(RootModel[List[PolicyAction]]):
    """Ordered list of actions attached to one upstream route."""

    model_config = ConfigDict(frozen=True)

    root: List[PolicyAction] = Field(default_factory=list)

    @field_validator("root", mode="before")
    @classmethod
    def _null_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @classmethod
    def allow_all(cls) -> "Policy":
        return cls([PolicyAction(allow=ActionOperator(or_=OrGroup([AcceptCriterion()])))])

    def check_authorized(self, email: str) -> bool:
        """Deny when there are no actions; otherwise any permissive action grants.

        An action that evaluates to EMPTY (nothing configured in it) counts
        as permissive, but a policy with no actions at all does not.
        """
        if not self.root:
            return False
        return any(action.check_authorized(email).to_bool(True) for action in self.root)

    def extract_emails(self, into: Set[str]) -> None:
        for action in self.root:
            action.extract_emails(into)


class PolicyRoute(BaseModel):
    """One upstream route of the proxy configuration."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_: str = Field(alias="from")
    prefix: str = ""
    path: str = ""
    allow_public_unauthenticated_access: bool = False
    policy: Policy = Field(default_factory=Policy)

    @property
    def routing_key(self) -> str:
        return f"{self.from_}{self.path}{self.prefix}"

    def with_public_override(self) -> "PolicyRoute":
        """Replace the policy with allow-all when the route is public."""
        if not self.allow_public_unauthenticated_access:
            return self
        return self.model_copy(update={"policy": Policy.allow_all()})


class PolicyDocument(BaseModel):
    """The subset of the proxy configuration the hallway reads."""

    model_config = ConfigDict(frozen=True)

    routes: List[PolicyRoute]

    def extract_emails(self) -> Set[str]:
        emails: Set[str] = set()
        for route in self.routes:
            route.policy.extract_emails(emails)
        return emails
