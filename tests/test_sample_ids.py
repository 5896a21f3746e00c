"""Unit tests for lab sample identifiers."""

from datetime import datetime

from hms_engine.services.sample_ids import SampleIdGenerator


class TestSampleIdGenerator:
    """Test sample ID format and daily counters."""

    def test_known_prefixes(self, clock):
        """Test department and test-type prefixes from the tables."""
        generator = SampleIdGenerator(clock=clock)
        assert generator.generate("Complete Blood Count (CBC)", "hematology") == "HEM-CBC-20250417-0001"

    def test_counter_increments(self, clock):
        """Test the counter is shared across tests on the same day."""
        generator = SampleIdGenerator(clock=clock)
        generator.generate("Lipid Profile", "biochemistry")

        assert generator.generate("Urinalysis", "urinalysis") == "URI-URI-20250417-0002"

    def test_daily_reset(self, clock):
        """Test the counter restarts on a new day."""
        generator = SampleIdGenerator(clock=clock)
        generator.generate("Lipid Profile", "biochemistry")
        generator.generate("Lipid Profile", "biochemistry")

        clock.now = datetime(2025, 4, 18, 7, 0)
        assert generator.generate("Lipid Profile", "biochemistry") == "BIO-LIP-20250418-0001"

    def test_unknown_department(self, clock):
        """Test unknown departments use the LAB prefix."""
        generator = SampleIdGenerator(clock=clock)
        assert generator.generate("Blood Culture", "toxicology").startswith("LAB-BCX-")

    def test_initials_fallback(self, clock):
        """Test unknown test types use up to three word initials."""
        generator = SampleIdGenerator(clock=clock)
        assert generator.test_prefix("thyroid stimulating hormone panel") == "TSH"
        assert generator.test_prefix("Ferritin") == "F"
