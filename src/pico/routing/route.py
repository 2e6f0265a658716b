"""Route, Segment, and RouteMatch frozen dataclasses."""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pico.view.entities import ViewEntity

# A transform receives (value[, claims]) and returns the new value.
type Transform = Callable[..., Any]

# A policy receives (result[, claims]) and returns a truthy verdict.
type Policy = Callable[..., Any]


@dataclass(frozen=True, slots=True)
class Segment:
    """One segment of a route pattern.

    Literal:  ``users``  (is_var=False)
    Variable: ``:id``    (is_var=True, value="id")
    """

    value: str
    is_var: bool = False


@dataclass(frozen=True, slots=True)
class Route:
    """A (pattern, method) binding to a pipeline definition.

    Every stage is optional. ``function`` names a data-function in the
    catalog; ``view`` is the ordered tuple of view entities.
    """

    pattern: str
    method: str
    segments: tuple[Segment, ...] = ()
    preprocess: Transform | None = None
    function: str | None = None
    policy: Policy | None = None
    postprocess: Transform | None = None
    setcredential: Transform | None = None
    view: tuple[ViewEntity, ...] = ()

    @property
    def var_names(self) -> tuple[str, ...]:
        """Declared variable names, left to right."""
        return tuple(seg.value for seg in self.segments if seg.is_var)

    @property
    def stages(self) -> tuple[str, ...]:
        """Names of the declared stages in execution order."""
        declared = (
            ("PREPROCESS", self.preprocess),
            ("DATA-CALL", self.function),
            ("POLICY", self.policy),
            ("POSTPROCESS", self.postprocess),
            ("SETCREDENTIAL", self.setcredential),
            ("VIEW", self.view),
        )
        return tuple(name for name, stage in declared if stage)


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match.

    ``path_params`` maps the route's variable names to the raw,
    undecoded segment text.
    """

    route: Route
    path_params: Mapping[str, str] = field(default_factory=dict)
