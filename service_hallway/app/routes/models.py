"""
Destination tree shown on the hallway page.

In ``config.toml`` a route is untagged: its ``data`` is either a routing
key (a single destination) or a list of nested routes (a group). The shape
is resolved here, once, into ``LeafDestination`` or ``GroupDestination``.
"""

from typing import Annotated, Any, Literal, Tuple, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

DEFAULT_BUTTON_COLOR = "#FEFFE8"


class _DestinationBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    icon: str
    label: str
    button_color: str = DEFAULT_BUTTON_COLOR

    @property
    def escaped_label(self) -> str:
        """Label usable as an HTML id."""
        return self.label.replace(" ", "_").replace(".", "_")


class LeafDestination(_DestinationBase):
    kind: Literal["leaf"] = "leaf"
    key: str

    @property
    def is_group(self) -> bool:
        return False


class GroupDestination(_DestinationBase):
    kind: Literal["group"] = "group"
    children: Tuple["Destination", ...] = ()

    @property
    def is_group(self) -> bool:
        return True


def _tag_destination(raw: Any) -> Any:
    if isinstance(raw, BaseModel) or not isinstance(raw, dict):
        return raw

    fields = {name: value for name, value in raw.items() if name not in ("data", "kind")}
    data = raw.get("data")
    if isinstance(data, str):
        return {**fields, "kind": "leaf", "key": data}
    if isinstance(data, list):
        return {**fields, "kind": "group", "children": data}
    raise ValueError(
        f"Route '{raw.get('label', '?')}' needs 'data': a routing key or a list of routes"
    )


Destination = Annotated[
    Union[LeafDestination, GroupDestination],
    Field(discriminator="kind"),
    BeforeValidator(_tag_destination),
]

GroupDestination.model_rebuild()


class Domain(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str


class HallwayConfig(BaseModel):
    """Contents of ``config.toml``."""

    model_config = ConfigDict(frozen=True)

    domain: Domain
    routes: Tuple[Destination, ...] = ()
