import pandas as pd
import pytest

from logic.selection import empty_state, flatten, reverse_apply, toggle
from logic.taxonomy import (
    build_taxonomy, load_reference_taxonomy, taxonomy_from_dataframe, taxonomy_to_dataframe, truncate,
)
from utils.constants import (
    GEOGRAPHY_CHILD_KEYS, GEOGRAPHY_CSV, GEOGRAPHY_LEVELS, INDUSTRY_CHILD_KEYS, INDUSTRY_CSV, INDUSTRY_LEVELS,
)


class TestBuildTaxonomy:
    """Test building from nested API records."""

    def test_nested_records(self):
        records = [
            {"name": "Europe", "regions": [
                {"id": "we", "name": "Western Europe", "subRegions": [{"name": "France"}, {"name": "Germany"}]},
            ]},
            {"id": "oc", "name": "Oceania", "regions": [{"name": "Australia"}]},
        ]
        taxonomy = build_taxonomy(records, GEOGRAPHY_LEVELS, GEOGRAPHY_CHILD_KEYS)

        assert [r.name for r in taxonomy.roots] == ["Europe", "Oceania"]
        assert taxonomy.roots[0].id == "europe"
        assert taxonomy.contains(1, "we")
        assert taxonomy.contains(2, "europe/western-europe/france")
        assert taxonomy.contains(1, "oceania/australia")
        node, _ = taxonomy.locate(1, "oceania/australia")
        assert node.is_leaf

    def test_industry_records_four_levels(self):
        records = [{"id": "10", "name": "Energy", "industryGroups": [
            {"id": "1010", "name": "Energy", "industries": [
                {"id": "101010", "name": "Energy Equipment & Services", "subIndustries": [
                    {"id": "10101010", "name": "Oil & Gas Drilling"},
                    {"id": "10101020", "name": "Oil & Gas Equipment & Services"},
                ]},
            ]},
        ]}]
        taxonomy = build_taxonomy(records, INDUSTRY_LEVELS, INDUSTRY_CHILD_KEYS)
        assert taxonomy.depth == 4
        assert taxonomy.size == 5
        state = reverse_apply(taxonomy, ["Oil & Gas Drilling", "Oil & Gas Equipment & Services"])
        assert flatten(taxonomy, state) == ["Energy"]

    def test_record_without_name_rejected(self):
        with pytest.raises(ValueError, match="has no name"):
            build_taxonomy([{"id": "x"}], GEOGRAPHY_LEVELS, GEOGRAPHY_CHILD_KEYS)

    def test_empty_records(self):
        taxonomy = build_taxonomy([], GEOGRAPHY_LEVELS, GEOGRAPHY_CHILD_KEYS)
        assert taxonomy.roots == ()
        assert flatten(taxonomy, empty_state(taxonomy)) == []


class TestTaxonomyFromDataFrame:
    """Test building from one-column-per-level tables."""

    def test_shared_prefixes_deduplicated(self):
        df = pd.DataFrame([
            ["Europe", "Western Europe", "France"],
            ["Europe", "Western Europe", "France"],
            ["Europe", "Western Europe", "Germany"],
            ["Europe", "Northern Europe", ""],
        ], columns=list(GEOGRAPHY_LEVELS))
        taxonomy = taxonomy_from_dataframe(df, GEOGRAPHY_LEVELS)

        assert taxonomy.size == 5
        europe = taxonomy.roots[0]
        assert [c.name for c in europe.children] == ["Western Europe", "Northern Europe"]
        assert [c.name for c in europe.children[0].children] == ["France", "Germany"]
        assert europe.children[1].is_leaf

    def test_malformed_rows_dropped(self):
        df = pd.DataFrame([
            ["Europe", "Western Europe", "France"],
            ["", "Orphan Region", "Orphan"],
            ["Asia", "", "Japan"],
            ["", "", ""],
        ], columns=list(GEOGRAPHY_LEVELS))
        taxonomy = taxonomy_from_dataframe(df, GEOGRAPHY_LEVELS)
        assert [name for name in (n.name for _, n, _ in taxonomy.walk())] == ["Europe", "Western Europe", "France"]

    def test_values_are_trimmed(self):
        df = pd.DataFrame([["  Europe ", " Western Europe", "France  "]], columns=list(GEOGRAPHY_LEVELS))
        taxonomy = taxonomy_from_dataframe(df, GEOGRAPHY_LEVELS)
        assert taxonomy.contains(2, "europe/western-europe/france")

    def test_missing_deeper_columns_allowed(self):
        df = pd.DataFrame({"Continent": ["Europe", "Asia"], "Region": ["Western Europe", "East Asia"]})
        taxonomy = taxonomy_from_dataframe(df, GEOGRAPHY_LEVELS)
        assert taxonomy.depth == 3
        assert taxonomy.size == 4

    def test_no_level_columns(self):
        assert taxonomy_from_dataframe(pd.DataFrame({"Other": ["x"]}), GEOGRAPHY_LEVELS) is None

    def test_not_a_dataframe(self):
        assert taxonomy_from_dataframe(None, GEOGRAPHY_LEVELS) is None

    def test_slug_collision_raises(self):
        df = pd.DataFrame([
            ["Europe", "Western-Europe", ""],
            ["Europe", "Western Europe", ""],
        ], columns=list(GEOGRAPHY_LEVELS))
        with pytest.raises(ValueError, match="Duplicate id"):
            taxonomy_from_dataframe(df, GEOGRAPHY_LEVELS)

    def test_round_trip_through_dataframe(self, geography_csv):
        taxonomy = load_reference_taxonomy(geography_csv, GEOGRAPHY_LEVELS)
        rebuilt = taxonomy_from_dataframe(taxonomy_to_dataframe(taxonomy), GEOGRAPHY_LEVELS)
        assert [(lvl, n.id) for lvl, n, _ in rebuilt.walk()] == [(lvl, n.id) for lvl, n, _ in taxonomy.walk()]


class TestLoadReferenceTaxonomy:
    """Test loading bundled CSV reference data."""

    def test_fixture_geography(self, geography_csv):
        taxonomy = load_reference_taxonomy(geography_csv, GEOGRAPHY_LEVELS)
        assert [r.name for r in taxonomy.roots] == ["Europe", "Asia", "Oceania"]
        node, _ = taxonomy.locate(1, "oceania/australia")
        assert node.is_leaf

    def test_fixture_industry_skips_malformed_row(self, industry):
        assert [r.name for r in industry.roots] == ["Energy", "Financials"]
        assert industry.depth == 4
        assert industry.contains(3, "energy/energy/energy-equipment-services/oil-gas-drilling")

    def test_missing_file(self, tmp_path):
        assert load_reference_taxonomy(str(tmp_path / "nope.csv"), GEOGRAPHY_LEVELS) is None

    def test_bundled_data_loads(self):
        geography = load_reference_taxonomy(GEOGRAPHY_CSV, GEOGRAPHY_LEVELS)
        industry = load_reference_taxonomy(INDUSTRY_CSV, INDUSTRY_LEVELS)
        assert geography is not None and geography.depth == 3
        assert industry is not None and industry.depth == 4
        mexico, _ = geography.locate(1, "north-america/mexico")
        assert mexico.is_leaf


class TestIndustryCollisions:
    """Industry names repeat across levels (e.g. 'Financial Services')."""

    def test_label_resolves_to_deepest_namesake(self, industry):
        state = reverse_apply(industry, ["Financial Services"])
        assert state.is_selected(2, "financials/financial-services/financial-services")
        assert not state.is_selected(1, "financials/financial-services")
        assert not state.is_selected(2, "financials/financial-services/capital-markets")
        assert flatten(industry, state) == ["Financial Services"]

    def test_namesake_chain_with_single_child_reconciles_up(self, industry):
        state = reverse_apply(industry, ["Energy"])
        assert state.is_selected(1, "energy/energy")
        assert state.is_selected(0, "energy")
        assert flatten(industry, state) == ["Energy"]

    def test_selected_industry_flattens_to_shared_name(self, industry):
        state = toggle(industry, empty_state(industry), 2, "financials/financial-services/financial-services")
        assert flatten(industry, state) == ["Financial Services"]
        assert not state.is_selected(1, "financials/financial-services")

    def test_single_child_chain_collapses(self, industry):
        state = toggle(industry, empty_state(industry), 1, "energy/energy")
        assert state.is_selected(0, "energy")
        assert flatten(industry, state) == ["Energy"]


class TestTruncate:
    """Test the shallower picker variant."""

    def test_three_level_variant(self, industry):
        short = truncate(industry, 3)
        assert short.levels == INDUSTRY_LEVELS[:3]
        assert short.contains(2, "financials/banks/banks")
        node, _ = short.locate(2, "financials/banks/banks")
        assert node.is_leaf
        assert not short.contains(3, "financials/banks/banks/regional-banks")

    def test_deeper_labels_stale_in_short_tree(self, industry):
        full_state = toggle(industry, empty_state(industry), 3, "financials/banks/banks/regional-banks")
        labels = flatten(industry, full_state)
        assert labels == ["Regional Banks"]
        assert flatten(truncate(industry, 3), reverse_apply(truncate(industry, 3), labels)) == []

    def test_shared_labels_survive_depth_change(self, industry):
        state = toggle(industry, empty_state(industry), 1, "financials/banks")
        labels = flatten(industry, state)
        short = truncate(industry, 3)
        assert flatten(short, reverse_apply(short, labels)) == labels

    def test_same_or_deeper_depth_is_identity(self, industry):
        assert truncate(industry, 4) is industry
        assert truncate(industry, 9) is industry

    def test_invalid_depth(self, industry):
        with pytest.raises(ValueError):
            truncate(industry, 0)

    def test_none_taxonomy(self):
        assert truncate(None, 3) is None
