"""
Tests for AISS Setting Lookup

Run with: pytest tests/test_aiss.py -v
"""

import pytest
from core.aiss import (
    AISS_CONFIG_TABLE,
    AissLookup,
    AissSetting,
    AissTier,
    lookup_aiss_setting,
)
from core.metering import PowerCalculator


class TestAissTable:
    """Test the standard tier table."""

    def test_table_shape(self):
        assert len(AISS_CONFIG_TABLE) == 9
        limits = [t.limit for t in AISS_CONFIG_TABLE]
        assert limits == [200, 250, 500, 750, 1300, 1800, 2600, 3700, 5000]

    def test_all_delays_same(self):
        assert {t.time_delay for t in AISS_CONFIG_TABLE} == {"0.5~1.0"}

    def test_ground_is_half_phase(self):
        for tier in AISS_CONFIG_TABLE:
            assert float(tier.ground_current) == pytest.approx(float(tier.phase_current) / 2)


class TestAissLookup:
    """Test tier selection."""

    def setup_method(self):
        """Set up lookup for each test."""
        self.lookup = AissLookup()

    @pytest.mark.parametrize("max_tr,limit", [
        (0, 200),
        (179, 200),
        (200, 200),
        (201, 250),
        (357, 500),
        (536, 750),
        (1785, 1800),
        (3570, 3700),
        (5000, 5000),
    ])
    def test_first_tier_at_or_above(self, max_tr, limit):
        """The first tier whose limit covers the capacity wins."""
        assert self.lookup.find_tier(max_tr).limit == limit

    @pytest.mark.parametrize("max_tr", [5001, 5355, 6000, 28560])
    def test_above_table_uses_last_tier(self, max_tr):
        """Capacities above every limit fall back to the last tier."""
        tier = self.lookup.find_tier(max_tr)
        assert tier.limit == 5000
        assert tier.phase_current == "200"
        assert tier.ground_current == "100"

    def test_lookup_row(self):
        """A CT row's setting carries its CT and Max TR."""
        row = PowerCalculator().calculate_table(0.45)[2]  # CT 15
        setting = self.lookup.lookup(row)

        assert isinstance(setting, AissSetting)
        assert setting.ct == 15
        assert setting.max_tr == 536
        assert setting.phase_current == "30"
        assert setting.ground_current == "15"
        assert setting.time_delay == "0.5~1.0"

    def test_setting_to_dict(self):
        row = PowerCalculator().calculate_table(0.0)[0]
        d = lookup_aiss_setting(row).to_dict()
        assert d == {
            "ct": 5,
            "max_tr": 179,
            "phase_current": "5",
            "ground_current": "2.5",
            "time_delay": "0.5~1.0",
        }

    def test_every_ct_has_setting(self):
        """No CT row is without a setting."""
        rows = PowerCalculator().calculate_table(1.0)
        for row in rows:
            assert self.lookup.lookup(row).phase_current

    def test_empty_table_rejected(self):
        with pytest.raises(ValueError):
            AissLookup(tiers=[])

    def test_unsorted_table_rejected(self):
        tiers = [
            AissTier(limit=500, phase_current="20", ground_current="10", time_delay="1"),
            AissTier(limit=200, phase_current="5", ground_current="2.5", time_delay="1"),
        ]
        with pytest.raises(ValueError):
            AissLookup(tiers=tiers)

    def test_custom_table(self):
        tiers = [AissTier(limit=100, phase_current="1", ground_current="0.5", time_delay="0.2")]
        lookup = AissLookup(tiers=tiers)
        assert lookup.find_tier(50).phase_current == "1"
        assert lookup.find_tier(500).phase_current == "1"
