import io
import json

import pandas as pd

from logic.selection import empty_state, toggle
from services.export import (
    CRITERIA_COLUMNS, criteria_frame, export_dataframe_to_csv_bytes, export_dataframe_to_excel_bytes,
    export_profile_json,
)


class TestCriteriaFrame:
    """Test the selected-criteria table."""

    def test_rows_per_label(self, world, industry):
        geo = toggle(world, toggle(world, empty_state(world), 0, "as"), 2, "fr")
        ind = toggle(industry, empty_state(industry), 1, "financials/banks")
        df = criteria_frame(world, geo, industry, ind)

        assert list(df.columns) == CRITERIA_COLUMNS
        assert df.values.tolist() == [
            ["Geography", "France", "Sub-region"],
            ["Geography", "Asia", "Continent"],
            ["Industry", "Banks", "Industry Group"],
        ]

    def test_nothing_loaded(self):
        df = criteria_frame(None, None, None, None)
        assert df.empty
        assert list(df.columns) == CRITERIA_COLUMNS


class TestExportBytes:
    """Test download payloads."""

    def test_csv(self):
        df = pd.DataFrame({"Kind": ["Geography"], "Label": ["Europe"]})
        assert export_dataframe_to_csv_bytes(df).decode("utf-8").splitlines() == ["Kind,Label", "Geography,Europe"]

    def test_excel(self):
        df = pd.DataFrame({"Kind": ["Geography"], "Label": ["Europe"]})
        data = export_dataframe_to_excel_bytes(df, "Criteria")
        assert data[:2] == b"PK"
        back = pd.read_excel(io.BytesIO(data), sheet_name="Criteria")
        assert back["Label"].tolist() == ["Europe"]

    def test_long_sheet_name_truncated(self):
        data = export_dataframe_to_excel_bytes(pd.DataFrame({"a": [1]}), "x" * 40)
        assert list(pd.read_excel(io.BytesIO(data), sheet_name=None)) == ["x" * 31]

    def test_profile_json(self):
        data = export_profile_json({"companyName": "Acme", "targetCriteria": {"countries": ["Europe"]}})
        assert json.loads(data) == {"companyName": "Acme", "targetCriteria": {"countries": ["Europe"]}}
        assert json.loads(export_profile_json(None)) == {}
