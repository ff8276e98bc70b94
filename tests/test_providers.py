import pandas as pd
import pytest

from firecover import config
from firecover.errors import InputTableError
from firecover.models import CoverageRecord
from firecover.providers import (
    ProviderAttributor,
    first_origin_id,
    normalise_crew_type,
    split_origin_ids,
)


def _coverage(rows):
    return pd.DataFrame(
        {
            config.AREA_ID: [r[0] for r in rows],
            config.BAND: [r[1] for r in rows],
            "covering_origin_ids": [r[2] for r in rows],
            "match_count": [len(r[2]) for r in rows],
        }
    )


def test_attribute_uses_first_tied_origin(origins) -> None:
    coverage = _coverage([("W", 8.0, ("S3", "S1")), ("X", 5.0, ("S1",))])

    out = ProviderAttributor(origins).attribute(coverage)

    assert out[config.AREA_ID].tolist() == ["W", "X"]
    assert out["representative_origin_id"].tolist() == ["S3", "S1"]
    assert out["provider_is_full_time"].tolist() == [False, True]


def test_missing_metadata_and_empty_ties_give_nulls(origins, caplog) -> None:
    coverage = _coverage([("V", 3.0, ("GHOST",)), ("Q", 5.0, ())])

    with caplog.at_level("WARNING"):
        out = ProviderAttributor(origins).attribute(coverage)

    assert out["representative_origin_id"].iloc[0] == "GHOST"
    assert pd.isna(out["representative_origin_id"].iloc[1])
    assert out["provider_is_full_time"].isna().all()
    assert "without metadata" in caplog.text


def test_attribute_does_not_modify_input(origins) -> None:
    coverage = _coverage([("X", 5.0, ("S1", "S2"))])
    before = coverage.copy()

    ProviderAttributor(origins).attribute(coverage)

    pd.testing.assert_frame_equal(coverage, before)


def test_attribute_on_empty_coverage(origins) -> None:
    out = ProviderAttributor(origins).attribute(_coverage([]))

    assert out.empty
    assert list(out.columns) == [config.AREA_ID, "representative_origin_id", "provider_is_full_time"]


def test_crew_labels_are_normalised() -> None:
    assert normalise_crew_type("Wholetime") is True
    assert normalise_crew_type(" retained ") is False
    assert normalise_crew_type(1) is True
    assert normalise_crew_type(0.0) is False
    assert normalise_crew_type("seasonal") is pd.NA
    assert normalise_crew_type(None) is pd.NA


def test_duplicate_origin_metadata_is_rejected(origins) -> None:
    doubled = pd.concat([origins, origins.iloc[[0]]], ignore_index=True)

    with pytest.raises(InputTableError, match="Duplicate"):
        ProviderAttributor(doubled)


def test_origin_table_needs_crew_column() -> None:
    with pytest.raises(InputTableError):
        ProviderAttributor(pd.DataFrame({config.ORIGIN_ID: ["S1"]}))


@pytest.mark.parametrize(
    "joined, expected",
    [
        ("S1 | S2", "S1"),
        ("S1|S2", "S1|S2"),
        (" S1 | S2", " S1"),
        ("S7", "S7"),
        ("", None),
        (float("nan"), None),
        (None, None),
    ],
)
def test_first_origin_id_from_legacy_string(joined, expected) -> None:
    assert first_origin_id(joined, " | ") == expected


def test_split_origin_ids_keeps_order() -> None:
    assert split_origin_ids("B | A | C") == ("B", "A", "C")


def test_attribute_accepts_coverage_records(origins) -> None:
    records = [CoverageRecord("W", 8.0, ("S2", "S4")), CoverageRecord("V", 3.0, ("GHOST",))]
    attributor = ProviderAttributor(origins)

    out = attributor.attribute(records)

    assert out["representative_origin_id"].tolist() == ["S2", "GHOST"]
    assert out["provider_is_full_time"].tolist()[0] == True  # noqa: E712
    assert attributor.is_full_time("S3") == False  # noqa: E712
    assert attributor.is_full_time(None) is pd.NA


def test_split_origin_ids_uses_exact_delimiter() -> None:
    assert split_origin_ids("A|B | C", " | ") == ("A|B", "C")
    assert split_origin_ids(" S1 ", " | ") == (" S1 ",)
    assert split_origin_ids("") == ()


def test_missing_representative_stays_none(origins) -> None:
    coverage = _coverage([("Q", 5.0, ()), ("X", 5.0, ("S1",))])

    out = ProviderAttributor(origins).attribute(coverage)

    assert out["representative_origin_id"].dtype == object
    assert out["representative_origin_id"].tolist() == [None, "S1"]
