"""
Unit tests for StatisticsAggregator and StatisticsSummary.
"""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from medcompress.codecs.base import CodecResult
from medcompress.metrics.statistics import (
    CodecStatistics,
    StatisticsAggregator,
    StatisticsSummary,
    TABLE_HEADER,
    average,
)
from medcompress.metrics.sweep import ResultRecord


def success(time_ms, size, original_size=1000, quality=None, target_ratio=None):
    return CodecResult(
        compression_time=time_ms,
        compressed_size=size,
        compression_ratio=original_size / size,
        path=f"/tmp/{size}",
        quality=quality,
        target_ratio=target_ratio,
    )


def make_record(name, ratio, jpeg, jp2, jph, original_size=1000):
    return ResultRecord(
        filename=name,
        width=10,
        height=50,
        bit_depth=16,
        target_compression_ratio=ratio,
        original_size=original_size,
        codec_results={"jpeg": jpeg, "jp2": jp2, "jph": jph},
    )


@pytest.fixture
def records():
    return [
        make_record(
            "a", 10,
            success(10.0, 100, quality=60),
            success(20.0, 200, target_ratio=10),
            CodecResult.failure("ojph_compress missing"),
        ),
        make_record(
            "b", 10,
            success(30.0, 300, quality=60),
            CodecResult.failure("bad"),
            CodecResult.failure("ojph_compress missing"),
        ),
        make_record(
            "a", 50,
            success(4.0, 20, quality=10),
            success(6.0, 25, target_ratio=50),
            CodecResult.failure("ojph_compress missing"),
        ),
    ]


def test_average_empty():
    assert average([]) == 0
    assert average([1.0, 2.0, 6.0]) == pytest.approx(3.0)


class TestStatisticsAggregator:
    """Tests for StatisticsAggregator."""
    
    def test_means_over_successes(self, records):
        summary = StatisticsAggregator(target_ratios=[10, 50]).aggregate(records)
        
        jpeg = summary[10]["jpeg"]
        assert jpeg.avg_time == pytest.approx(20.0)
        assert jpeg.avg_size == pytest.approx(200.0)
        assert jpeg.avg_ratio == pytest.approx((10.0 + 1000 / 300) / 2)
        assert jpeg.avg_quality == pytest.approx(60.0)
        assert jpeg.count == 2
        
        jp2 = summary[10]["jp2"]
        assert jp2.avg_time == pytest.approx(20.0)
        assert jp2.avg_ratio == pytest.approx(5.0)
        assert jp2.avg_quality is None
        assert jp2.count == 1
    
    def test_empty_bucket_is_zero(self, records):
        summary = StatisticsAggregator(target_ratios=[10, 50]).aggregate(records)
        jph = summary[10]["jph"]
        assert (jph.avg_time, jph.avg_size, jph.avg_ratio) == (0, 0, 0)
        assert jph.empty
    
    def test_configured_ratio_without_records(self, records):
        summary = StatisticsAggregator(target_ratios=[5, 10, 50]).aggregate(records)
        assert summary.target_ratios == [5, 10, 50]
        assert summary[5]["jpeg"].to_dict() == {"avgTime": 0.0, "avgSize": 0.0, "avgRatio": 0.0, "avgQuality": 0.0}
    
    def test_extra_ratio_from_records(self, records):
        summary = StatisticsAggregator(target_ratios=[10]).aggregate(records)
        assert summary.target_ratios == [10, 50]
    
    def test_no_records(self):
        summary = StatisticsAggregator(target_ratios=[5]).aggregate([])
        assert set(summary[5].keys()) == {"jpeg", "jp2", "jph"}


class TestStatisticsSummary:
    """Tests for StatisticsSummary output."""
    
    def test_to_dict_keeps_zero_buckets(self, records):
        data = StatisticsAggregator(target_ratios=[10, 50]).aggregate(records).to_dict()
        
        assert list(data.keys()) == ["10", "50"]
        assert data["10"]["jph"] == {"avgTime": 0.0, "avgSize": 0.0, "avgRatio": 0.0}
        assert data["50"]["jpeg"]["avgQuality"] == 10
    
    def test_table_omits_zero_buckets(self, records):
        table = StatisticsAggregator(target_ratios=[10, 50]).aggregate(records).format_table()
        lines = table.splitlines()
        
        assert lines[0] == TABLE_HEADER
        assert len(lines) == 2 + 4  # jpeg and jp2 at both ratios
        assert not any(line.startswith("JPH") for line in lines)
        assert "JPEG   | 10:1 | 6.67:1 | 20.00 | 200" in lines
    
    def test_save_and_load(self, records, tmp_path):
        summary = StatisticsAggregator(target_ratios=[10, 50]).aggregate(records)
        path = tmp_path / "compression_statistics.json"
        summary.save(path)
        
        loaded = StatisticsSummary.load(path)
        assert loaded.to_dict() == summary.to_dict()
        assert loaded.format_table() == summary.format_table()
    
    def test_dataframe(self, records):
        df = StatisticsAggregator(target_ratios=[10, 50]).aggregate(records).to_dataframe()
        
        assert len(df) == 6
        assert list(df["codec"].unique()) == ["JPEG", "JP2", "JPH"]
        row = df[(df["target_ratio"] == 50) & (df["codec"] == "JP2")].iloc[0]
        assert row["avg_ratio"] == pytest.approx(40.0)
        assert row["num_success"] == 1


def test_codec_statistics_from_dict():
    stats = CodecStatistics.from_dict({"avgTime": 1.0, "avgSize": 2.0, "avgRatio": 3.0})
    assert stats.avg_quality is None
    assert stats.to_dict() == {"avgTime": 1.0, "avgSize": 2.0, "avgRatio": 3.0}


def test_summary_figures(records, tmp_path):
    from medcompress.visualization import save_summary_figures
    
    summary = StatisticsAggregator(target_ratios=[10, 50]).aggregate(records)
    save_summary_figures(summary, tmp_path / "figures")
    
    assert (tmp_path / "figures" / "achieved_ratio.png").exists()
    assert (tmp_path / "figures" / "compression_time.png").exists()


def test_close_ratios_keep_separate_buckets(tmp_path):
    ratios = [12.34567, 12.345671]
    summary = StatisticsAggregator(target_ratios=ratios).aggregate([])
    
    data = summary.to_dict()
    assert len(data) == 2
    
    path = tmp_path / "compression_statistics.json"
    summary.save(path)
    assert StatisticsSummary.load(path).target_ratios == ratios
