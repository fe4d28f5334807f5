import pytest

from ovdiag.diag import (
    ECUDTC,
    DataFormat,
    FormatKind,
    ParamByteOrder,
    Parameter,
)
from ovdiag.ecuview import (
    DTC_TABLE_HEADER,
    ENV_TABLE_HEADER,
    DisplayableDTC,
    VariantMatch,
    dtc_table_rows,
    ecu_info_rows,
    env_table_rows,
    lookup_dtc,
    make_displayable_dtc,
    select_variant,
)
from ovdiag.schema import (
    Connection,
    ECUVariantDefinition,
    ECUVariantPattern,
    IsoTpConnection,
    OvdECU,
    ServerType,
)


def _param(name, kind, unit="rpm"):
    return Parameter(
        name=name,
        unit=unit,
        start_bit=0,
        length_bits=8,
        byte_order=ParamByteOrder.BIG_ENDIAN,
        data_format=DataFormat(kind),
    )


def _variant(name, *ids):
    return ECUVariantDefinition(
        name=name,
        description=f"{name} variant",
        patterns=[ECUVariantPattern(vendor=f"vendor-{i}", vendor_id=i) for i in ids],
        errors=[],
    )


@pytest.fixture
def ecu():
    return OvdECU(
        name="ECU",
        description="Engine control",
        variants=[_variant("first", 10, 11), _variant("second", 20)],
        connections=[
            Connection(
                baud=500_000,
                send_id=0x7E0,
                connection_type=IsoTpConnection(8, 20, False, False),
                server_type=ServerType.UDS,
                recv_id=0x7E8,
            )
        ],
    )


def test_select_variant_matches_pattern(ecu):
    match = select_variant(ecu, 20)
    assert match.variant is ecu.variants[1]
    assert match.pattern is ecu.variants[1].patterns[0]
    assert match.unknown is False


def test_select_variant_second_pattern_of_first_variant(ecu):
    match = select_variant(ecu, 11)
    assert match.variant is ecu.variants[0]
    assert match.pattern.vendor_id == 11


def test_select_variant_unknown_falls_back_to_first(ecu):
    match = select_variant(ecu, 99)
    assert match.variant is ecu.variants[0]
    assert match.pattern is None
    assert match.unknown is True


def test_select_variant_without_variants_raises(ecu):
    ecu.variants = []
    with pytest.raises(LookupError):
        select_variant(ecu, 10)


def test_lookup_dtc_matches_suffix():
    known = [
        ECUDTC("P1000", "s1", "d1"),
        ECUDTC("P2001", "s2", "d2"),
    ]
    assert lookup_dtc(known, "2001") is known[1]


def test_lookup_dtc_first_match_wins():
    known = [ECUDTC("AP2001", "a", "a"), ECUDTC("BP2001", "b", "b")]
    assert lookup_dtc(known, "P2001") is known[0]


def test_lookup_dtc_unknown_placeholder():
    dtc = lookup_dtc([ECUDTC("P1000", "s", "d")], "U0100")
    assert dtc.error_name == "U0100"
    assert dtc.summary == "UNKNOWN ERROR"
    assert dtc.description == "UNKNOWN DTC"
    assert dtc.envs == []


def test_make_displayable_dtc_decodes_envs():
    speed = _param("Speed", FormatKind.IDENTICAL)
    flag = _param("Flag", FormatKind.BOOL, unit="")
    known = [ECUDTC("P2001", "sum", "desc", envs=[speed, flag])]
    data = b"\x05"
    dtc = make_displayable_dtc(known, "P2001", "Stored", True, data)
    assert dtc.code == "P2001"
    assert dtc.summary == "sum"
    assert dtc.desc == "desc"
    assert dtc.state == "Stored"
    assert dtc.mil_on is True
    assert dtc.envs == [
        ("Speed", speed.decode_value_to_string(data)),
        ("Flag", flag.decode_value_to_string(data)),
    ]


def test_make_displayable_dtc_skips_undecodable_params():
    good = _param("Good", FormatKind.IDENTICAL)
    bad = _param("Bad", FormatKind.SCALE_LINEAR)
    known = [ECUDTC("P2001", "s", "d", envs=[bad, good])]
    dtc = make_displayable_dtc(known, "P2001", "Pending", False, b"\x01")
    assert [name for name, _ in dtc.envs] == ["Good"]


def test_make_displayable_dtc_without_env_data():
    known = [ECUDTC("P2001", "s", "d", envs=[_param("Speed", FormatKind.IDENTICAL)])]
    dtc = make_displayable_dtc(known, "P2001", "Stored", False, None)
    assert dtc.envs == []


def test_make_displayable_dtc_unknown_code():
    dtc = make_displayable_dtc([], "C1234", "Stored", False, b"\x00")
    assert (dtc.code, dtc.summary, dtc.desc) == ("C1234", "UNKNOWN ERROR", "UNKNOWN DTC")


def test_dtc_table_rows():
    dtcs = [
        DisplayableDTC("P1", "s", "first", "Stored", True),
        DisplayableDTC("P2", "s", "second", "Pending", False),
    ]
    rows = dtc_table_rows(dtcs)
    assert rows == [
        ["P1", "first", "Stored", "YES"],
        ["P2", "second", "Pending", "NO "],
    ]
    assert all(len(r) == len(DTC_TABLE_HEADER) for r in rows)


def test_env_table_rows():
    dtc = DisplayableDTC("P1", "s", "d", "Stored", False, envs=[("A", "1"), ("B", "2")])
    rows = env_table_rows(dtc)
    assert rows == [["A", "1"], ["B", "2"]]
    assert all(len(r) == len(ENV_TABLE_HEADER) for r in rows)


def test_ecu_info_rows_known_variant(ecu):
    match = select_variant(ecu, 20)
    assert ecu_info_rows(ecu, match) == [
        ["Name", "ECU"],
        ["Description", "Engine control"],
        ["Software", "second"],
        ["Manufacture", "vendor-20"],
    ]


def test_ecu_info_rows_unknown_variant(ecu):
    match = VariantMatch(ecu.variants[0], None, unknown=True)
    rows = ecu_info_rows(ecu, match)
    assert rows[2] == ["Software", "first"]
    assert rows[3] == ["Manufacture", "Unknown"]