"""
Loader for Input C: region → state-code membership.

Region definitions are configuration, not data: an unknown state code or an
empty region is a configuration error and fails before any recompute.
"""

from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Union

import structlog
import yaml

from asc_registry.exceptions import RegionDefinitionError
from asc_registry.ingestion.contracts import US_STATE_CODES

logger = structlog.get_logger(__name__)

DEFAULT_REGIONS_RESOURCE = "regions.yml"


@dataclass(frozen=True)
class RegionDefinition:
    """A named set of state codes; a state may belong to several regions."""
    region: str
    state_ids: FrozenSet[str]

    @property
    def state_count(self) -> int:
        return len(self.state_ids)


def build_region_definitions(mapping: Mapping[str, Iterable[str]]) -> List[RegionDefinition]:
    """
    Validate a ``{region: [state codes]}`` mapping.

    Raises:
        RegionDefinitionError: empty mapping, empty region, or unknown state codes
    """
    if not mapping:
        raise RegionDefinitionError("No regions defined")

    definitions = []
    for region, states in mapping.items():
        if isinstance(states, str) or states is None:
            raise RegionDefinitionError(
                f"Region '{region}' must list state codes", region=str(region)
            )
        codes = [str(code).strip().upper() for code in states]
        if not codes:
            raise RegionDefinitionError(f"Region '{region}' has no states", region=str(region))

        unknown = sorted(set(code for code in codes if code not in US_STATE_CODES))
        if unknown:
            raise RegionDefinitionError(
                f"Region '{region}' references undefined state codes {unknown}",
                region=str(region),
                invalid_codes=unknown,
            )
        definitions.append(RegionDefinition(region=str(region), state_ids=frozenset(codes)))

    return sorted(definitions, key=lambda d: d.region)


def load_region_definitions(path: Optional[Union[str, Path]] = None) -> List[RegionDefinition]:
    """
    Load region definitions from YAML (``regions: {name: [codes]}``).

    Args:
        path: YAML file; ``None`` loads the bundled Census regions
    """
    if path is None:
        text = resources.files("asc_registry.reference").joinpath(DEFAULT_REGIONS_RESOURCE).read_text(encoding="utf-8")
        source = f"bundled:{DEFAULT_REGIONS_RESOURCE}"
    else:
        path = Path(path)
        if not path.exists():
            raise RegionDefinitionError(f"Region definition file not found: {path}")
        text = path.read_text(encoding="utf-8")
        source = str(path)

    document = yaml.safe_load(text) or {}
    mapping: Dict[str, List[str]] = document.get("regions", document) if isinstance(document, dict) else {}
    definitions = build_region_definitions(mapping)

    logger.info(
        "Loaded region definitions",
        source=source,
        regions=len(definitions),
        states=len(set().union(*(d.state_ids for d in definitions))),
    )
    return definitions
