"""Variant matching and trouble-code presentation for an ECU definition."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from ovdiag.diag import ECUDTC, ParamDecodeError
from ovdiag.schema import ECUVariantDefinition, ECUVariantPattern, OvdECU

DTC_TABLE_HEADER = ["Error", "Description", "State", "MIL on"]
ENV_TABLE_HEADER = ["Parameter", "Value"]

UNKNOWN_SUMMARY = "UNKNOWN ERROR"
UNKNOWN_DESCRIPTION = "UNKNOWN DTC"


@dataclass(frozen=True)
class VariantMatch:
    """The variant chosen for an ECU and the pattern that identified it.

    ``pattern`` is ``None`` and ``unknown`` is true when no variant matched
    the ID reported by the ECU and the first variant is used instead.
    """

    variant: ECUVariantDefinition
    pattern: ECUVariantPattern | None
    unknown: bool


@dataclass
class DisplayableDTC:
    """A trouble code read from an ECU, ready to be shown."""

    code: str
    summary: str
    desc: str
    state: str
    mil_on: bool
    envs: list[tuple[str, str]] = field(default_factory=list)


def select_variant(ecu: OvdECU, variant_id: int) -> VariantMatch:
    """Find the variant whose patterns include ``variant_id``.

    Falls back to the first variant when none matches; raises
    :class:`LookupError` if the ECU defines no variants at all.
    """
    for variant in ecu.variants:
        for pattern in variant.patterns:
            if pattern.vendor_id == variant_id:
                return VariantMatch(variant, pattern, unknown=False)
    if not ecu.variants:
        raise LookupError(f"ECU {ecu.name!r} defines no variants")
    return VariantMatch(ecu.variants[0], None, unknown=True)


def lookup_dtc(known: Iterable[ECUDTC], code: str) -> ECUDTC:
    """The first known trouble code whose name ends with ``code``, or a placeholder."""
    for dtc in known:
        if dtc.error_name.endswith(code):
            return dtc
    return ECUDTC(
        error_name=code,
        summary=UNKNOWN_SUMMARY,
        description=UNKNOWN_DESCRIPTION,
        envs=[],
    )


def make_displayable_dtc(
    known: Iterable[ECUDTC],
    code: str,
    state: str,
    mil_on: bool,
    env_data: bytes | None,
) -> DisplayableDTC:
    """Combine a raw trouble code with its definition and freeze-frame data.

    ``env_data`` is the freeze-frame response, or ``None`` if it could not be
    read. Parameters that fail to decode are left out.
    """
    definition = lookup_dtc(known, code)
    result = DisplayableDTC(
        code=definition.error_name,
        summary=definition.summary,
        desc=definition.description,
        state=state,
        mil_on=mil_on,
    )
    if definition.envs and env_data is not None:
        for param in definition.envs:
            try:
                result.envs.append((param.name, param.decode_value_to_string(env_data)))
            except ParamDecodeError:
                continue
    return result


def dtc_table_rows(dtcs: Iterable[DisplayableDTC]) -> list[list[str]]:
    """Rows for the trouble-code table, in the order of :data:`DTC_TABLE_HEADER`."""
    return [
        [dtc.code, dtc.desc, dtc.state, "YES" if dtc.mil_on else "NO "]
        for dtc in dtcs
    ]


def env_table_rows(dtc: DisplayableDTC) -> list[list[str]]:
    """Rows for the freeze-frame table of one trouble code."""
    return [[name, value] for name, value in dtc.envs]


def ecu_info_rows(ecu: OvdECU, variant_match: VariantMatch) -> list[list[str]]:
    """Name/value rows describing the ECU and its matched variant."""
    vendor = variant_match.pattern.vendor if variant_match.pattern is not None else "Unknown"
    return [
        ["Name", ecu.name],
        ["Description", ecu.description],
        ["Software", variant_match.variant.name],
        ["Manufacture", vendor],
    ]