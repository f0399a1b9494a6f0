"""
World state restoration from external representations.

States that pass through JSON (HTTP, files, other tools) come back with
their set-typed fields as lists and their map-typed fields sometimes as
lists of [key, value] pairs. Everything is normalized back to proper
container types here, before any phase reads the state.
"""

import json
from typing import Any, Union

from trajectory_kernel.accumulation.registry import ensure_records
from trajectory_kernel.models.spirals import SpiralName
from trajectory_kernel.models.world import WorldState


def _as_mapping(value: Any) -> dict:
    """Accept a dict, a list of [key, value] pairs, or None."""
    if value is None:
        return {}
    if isinstance(value, dict):
        return value
    if isinstance(value, (list, tuple)):
        result = {}
        for item in value:
            if isinstance(item, dict) and "key" in item and "value" in item:
                result[item["key"]] = item["value"]
            else:
                key, val = item
                result[key] = val
        return result
    raise ValueError(f"Cannot interpret {type(value).__name__} as a mapping")


def _as_set(value: Any) -> set:
    """Accept a set, list, tuple, or a {member: truthy} object."""
    if value is None:
        return set()
    if isinstance(value, dict):
        return {k for k, present in value.items() if present}
    if isinstance(value, (set, frozenset, list, tuple)):
        return set(value)
    raise ValueError(f"Cannot interpret {type(value).__name__} as a set")


def _normalize(data: dict) -> dict:
    data = dict(data)
    data["unlocked_breakthroughs"] = _as_set(data.get("unlocked_breakthroughs"))
    data["deployed_technologies"] = _as_mapping(data.get("deployed_technologies"))
    data["extensions"] = _as_mapping(data.get("extensions"))

    accumulation = _as_mapping(data.get("accumulation"))
    restored = {}
    for domain_id, record in accumulation.items():
        record = dict(record)
        record.setdefault("domain", domain_id)
        for field in ("stocks", "crises", "crisis_months"):
            record[field] = _as_mapping(record.get(field))
        restored[domain_id] = record
    data["accumulation"] = restored

    if data.get("spirals") is not None:
        spirals = dict(data["spirals"])
        spirals["spirals"] = _as_mapping(spirals.get("spirals"))
        data["spirals"] = spirals

    return data


def restore_world_state(data: Union[WorldState, dict, str, bytes]) -> WorldState:
    """
    Build a fully-typed WorldState from a model, dict, or JSON document.

    Missing accumulation records and spiral entries are created so that
    phases never see a partially initialized state.
    """
    if isinstance(data, WorldState):
        state = data
    else:
        if isinstance(data, (str, bytes)):
            data = json.loads(data)
        state = WorldState.model_validate(_normalize(data))

    ensure_records(state)
    for name in SpiralName:
        state.spirals.get(name)
    return state
