"""
Tests for pixel sources, the compression sweep and the benchmark runner.

Tests:
- RawPixelSource metadata and pixel loading
- CompressionSweep record bookkeeping and failure isolation
- CompressionBenchmark persisted artifacts
"""

import json
import pytest
import numpy as np
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from conftest import FakeEncoder, write_raw_image
from medcompress.codecs import QualityJpegCodec, RatioJ2KCodec, RatioHTJ2KCodec
from medcompress.config import BenchmarkConfig
from medcompress.core.source import ImageRecord, RawPixelSource
from medcompress.core.windowing import WindowParameters
from medcompress.exceptions import MetadataMissing, ParseError
from medcompress.metrics.benchmark import CompressionBenchmark
from medcompress.metrics.sweep import CompressionSweep, ResultAccumulator, ResultRecord


def make_codecs(encoder=None, htj2k_encoder=None):
    encoder = encoder or FakeEncoder()
    return [
        QualityJpegCodec(),
        RatioJ2KCodec(runner=encoder),
        RatioHTJ2KCodec(runner=htj2k_encoder or encoder),
    ]


class TestRawPixelSource:
    """Tests for RawPixelSource."""
    
    def test_list_images(self, raw_dir, black_image, gradient_image):
        assert RawPixelSource(raw_dir).list_images() == ["black", "gradient"]
    
    def test_list_missing_dir(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            RawPixelSource(tmp_path / "nope").list_images()
    
    def test_load(self, raw_dir, black_image):
        record, samples, original_size = RawPixelSource(raw_dir).load("black")
        
        assert record == ImageRecord("black", 4, 4, 16, 16, "MONOCHROME2")
        assert samples.dtype == np.uint16
        assert len(samples) == 16
        assert original_size == 32
    
    def test_load_little_endian(self, raw_dir):
        write_raw_image(raw_dir, "le", np.array([1, 256, 1000, 65535]), 2, 2)
        _, samples, _ = RawPixelSource(raw_dir).load("le")
        np.testing.assert_array_equal(samples, [1, 256, 1000, 65535])
    
    def test_load_8bit(self, raw_dir):
        write_raw_image(raw_dir, "eight", np.arange(4), 2, 2, bits_allocated=8)
        record, samples, original_size = RawPixelSource(raw_dir).load("eight")
        assert samples.dtype == np.uint8
        assert original_size == 4
    
    def test_missing_metadata(self, raw_dir):
        write_raw_image(raw_dir, "orphan", np.zeros(4), 2, 2, metadata=False)
        with pytest.raises(MetadataMissing):
            RawPixelSource(raw_dir).load("orphan")
    
    def test_size_mismatch(self, raw_dir):
        write_raw_image(raw_dir, "short", np.zeros(3), 2, 2)
        with pytest.raises(ParseError):
            RawPixelSource(raw_dir).load("short")
    
    def test_invalid_dimensions(self, raw_dir):
        write_raw_image(raw_dir, "flat", np.zeros(0), 0, 4)
        with pytest.raises(ParseError):
            RawPixelSource(raw_dir).load("flat")
    
    def test_invalid_json(self, raw_dir, black_image):
        (raw_dir / "black.json").write_text("{not json")
        with pytest.raises(ParseError):
            RawPixelSource(raw_dir).load("black")


class TestCompressionSweep:
    """Tests for CompressionSweep."""
    
    def test_record_per_ratio(self, raw_dir, output_dir, gradient_image):
        sweep = CompressionSweep(RawPixelSource(raw_dir), make_codecs(), [5, 10, 50], output_dir)
        results = sweep.run(progress=False)
        
        assert len(results) == 3
        assert [r.target_compression_ratio for r in results] == [5, 10, 50]
        for record in results:
            assert record.filename == "gradient"
            assert record.width == 64
            assert record.height == 64
            assert record.bit_depth == 16
            assert record.original_size == 64 * 64 * 2
            assert set(record.codec_results) == {"jpeg", "jp2", "jph"}
            for result in record.codec_results.values():
                assert result.ok
                assert result.compression_ratio == pytest.approx(record.original_size / result.compressed_size)
        
        assert results.records[0].jpeg.quality == 80
        assert results.records[2].jpeg.quality == 10
        assert (output_dir / "gradient_q10.jpg").exists()
    
    def test_all_black_inputs(self, raw_dir, output_dir, black_image):
        encoder = FakeEncoder()
        sweep = CompressionSweep(RawPixelSource(raw_dir), make_codecs(encoder), [10], output_dir)
        sweep.run(progress=False)
        
        pgx, raw = encoder.inputs
        assert pgx == b"PG ML + 16 4 4\r\n" + b"\x00" * 32
        assert raw == b"\x00" * 32
    
    def test_window_once_per_bit_width(self, raw_dir, output_dir, black_image):
        sweep = CompressionSweep(RawPixelSource(raw_dir), make_codecs(), [5], output_dir)
        windowed = sweep.window_pixels(np.zeros(16, dtype=np.uint16))
        assert sorted(windowed) == [8, 16]
        assert windowed[8].dtype == np.uint8
        assert np.all(windowed[16] == 0)
    
    def test_missing_metadata_skipped(self, raw_dir, output_dir, gradient_image):
        write_raw_image(raw_dir, "orphan", np.zeros(16), 4, 4, metadata=False)
        sweep = CompressionSweep(RawPixelSource(raw_dir), make_codecs(), [5, 10], output_dir)
        results = sweep.run(progress=False)
        
        assert {r.filename for r in results} == {"gradient"}
        assert len(results) == 2
    
    def test_transform_error_skips_image(self, raw_dir, output_dir, black_image):
        sweep = CompressionSweep(
            RawPixelSource(raw_dir), make_codecs(), [5], output_dir,
            window=WindowParameters(window_width=0),
        )
        assert len(sweep.run(progress=False)) == 0
    
    def test_codec_failure_isolated(self, raw_dir, output_dir, gradient_image):
        codecs = make_codecs(FakeEncoder(), htj2k_encoder=FakeEncoder(fail=True))
        sweep = CompressionSweep(RawPixelSource(raw_dir), codecs, [5, 10], output_dir)
        results = sweep.run(progress=False)
        
        assert len(results) == 2
        for record in results:
            assert record.jpeg.ok
            assert record.jp2.ok
            assert not record.jph.ok
            assert record.jph.to_dict().keys() == {"error"}
    
    def test_each_unit_attempted_once(self, raw_dir, output_dir, gradient_image):
        encoder = FakeEncoder(fail=True)
        sweep = CompressionSweep(RawPixelSource(raw_dir), make_codecs(encoder), [5, 10, 20], output_dir)
        sweep.run(progress=False)
        # jp2 + jph per ratio, no retries
        assert len(encoder.calls) == 6
    
    def test_parallel_matches_sequential(self, raw_dir, output_dir, gradient_image, black_image):
        ratios = [5, 10, 15, 20, 30, 50]
        sequential = CompressionSweep(RawPixelSource(raw_dir), make_codecs(), ratios, output_dir).run(progress=False)
        parallel = CompressionSweep(
            RawPixelSource(raw_dir), make_codecs(), ratios, output_dir, max_workers=4
        ).run(progress=False)
        
        key = lambda r: (r.filename, r.target_compression_ratio, r.width, r.height, r.bit_depth, r.original_size)
        assert [key(r) for r in sequential] == [key(r) for r in parallel]
        assert all(res.ok for r in parallel for res in r.codec_results.values())
        assert list(output_dir.glob("*_temp.*")) == []
    
    def test_idempotent_static_fields(self, raw_dir, output_dir, gradient_image):
        sweep = CompressionSweep(RawPixelSource(raw_dir), make_codecs(), [5, 10], output_dir)
        first = sweep.run(progress=False)
        second = sweep.run(progress=False)
        
        static = lambda r: (r.target_compression_ratio, r.width, r.height, r.bit_depth, r.original_size)
        assert [static(r) for r in first] == [static(r) for r in second]
    
    def test_duplicate_codec_names(self, raw_dir, output_dir):
        with pytest.raises(ValueError):
            CompressionSweep(RawPixelSource(raw_dir), [QualityJpegCodec(), QualityJpegCodec()], [5], output_dir)


class TestResultAccumulator:
    """Tests for ResultAccumulator persistence."""
    
    def test_save_and_load(self, raw_dir, output_dir, gradient_image, tmp_path):
        codecs = make_codecs(htj2k_encoder=FakeEncoder(fail=True))
        results = CompressionSweep(RawPixelSource(raw_dir), codecs, [5], output_dir).run(progress=False)
        
        path = tmp_path / "compressionResults.json"
        results.save(path)
        
        with open(path) as f:
            data = json.load(f)
        assert list(data[0].keys()) == [
            "filename", "width", "height", "bitDepth", "targetCompressionRatio",
            "originalSize", "jpeg", "jp2", "jph",
        ]
        assert data[0]["jpeg"]["quality"] == 80
        assert data[0]["jp2"]["targetRatio"] == 5
        assert "error" in data[0]["jph"]
        
        loaded = ResultAccumulator.load(path)
        assert loaded.to_list() == results.to_list()
    
    def test_append_only(self):
        acc = ResultAccumulator()
        record = ResultRecord("a", 1, 1, 16, 5, 2)
        acc.append(record)
        snapshot = acc.records
        snapshot.clear()
        assert len(acc) == 1


class TestCompressionBenchmark:
    """End-to-end tests for CompressionBenchmark."""
    
    def test_run_writes_artifacts(self, raw_dir, output_dir, gradient_image, black_image):
        config = BenchmarkConfig(raw_dir=raw_dir, output_dir=output_dir, target_ratios=[5, 10])
        output = CompressionBenchmark(config, codecs=make_codecs()).run(progress=False)
        
        assert output.results_path == output_dir / "compressionResults.json"
        assert output.statistics_path == output_dir / "compression_statistics.json"
        assert output.results_path.exists()
        assert output.statistics_path.exists()
        assert (output_dir / "compression_statistics.csv").exists()
        assert len(output.results) == 4
        
        with open(output.statistics_path) as f:
            stats = json.load(f)
        assert list(stats.keys()) == ["5", "10"]
        assert set(stats["5"].keys()) == {"jpeg", "jp2", "jph"}
        assert stats["5"]["jpeg"]["avgQuality"] == 80
        assert "avgQuality" not in stats["5"]["jp2"]
    
    def test_no_images(self, raw_dir, output_dir):
        raw_dir.mkdir()
        config = BenchmarkConfig(raw_dir=raw_dir, output_dir=output_dir)
        output = CompressionBenchmark(config, codecs=make_codecs()).run(progress=False)
        
        assert len(output.results) == 0
        with open(output.statistics_path) as f:
            stats = json.load(f)
        assert stats["50"]["jph"] == {"avgTime": 0.0, "avgSize": 0.0, "avgRatio": 0.0}


class TestDicomExtractor:
    """Tests for DicomExtractor."""
    
    @staticmethod
    def write_dicom(path, pixels, rows, columns, drop=()):
        import pydicom
        from pydicom.dataset import Dataset, FileMetaDataset
        from pydicom.uid import CTImageStorage, ExplicitVRLittleEndian, generate_uid
        
        meta = FileMetaDataset()
        meta.MediaStorageSOPClassUID = CTImageStorage
        meta.MediaStorageSOPInstanceUID = generate_uid()
        meta.TransferSyntaxUID = ExplicitVRLittleEndian
        
        ds = Dataset()
        ds.file_meta = meta
        ds.SOPClassUID = CTImageStorage
        ds.SOPInstanceUID = meta.MediaStorageSOPInstanceUID
        ds.Modality = "CT"
        ds.Rows = rows
        ds.Columns = columns
        ds.SamplesPerPixel = 1
        ds.PhotometricInterpretation = "MONOCHROME2"
        ds.BitsAllocated = 16
        ds.BitsStored = 16
        ds.HighBit = 15
        ds.PixelRepresentation = 0
        ds.PixelData = np.asarray(pixels, dtype="<u2").tobytes()
        ds["PixelData"].VR = "OW"
        for keyword in drop:
            delattr(ds, keyword)
        pydicom.dcmwrite(path, ds, enforce_file_format=True)
    
    def test_extract_all(self, tmp_path):
        from medcompress.core.source import DicomExtractor
        
        dicom_dir = tmp_path / "dicomImages"
        dicom_dir.mkdir()
        pixels = np.arange(6) * 500
        self.write_dicom(dicom_dir / "ct001.dcm", pixels, rows=2, columns=3)
        (dicom_dir / "broken.dcm").write_bytes(b"not a dicom file")
        
        raw_dir = tmp_path / "raw"
        records = DicomExtractor(dicom_dir, raw_dir).extract_all()
        
        assert [r.name for r in records] == ["ct001"]
        with open(raw_dir / "ct001.json") as f:
            assert json.load(f) == {
                "width": 3,
                "height": 2,
                "bitsAllocated": 16,
                "bitsStored": 16,
                "photometricInterpretation": "MONOCHROME2",
            }
        
        record, samples, original_size = RawPixelSource(raw_dir).load("ct001")
        assert (record.width, record.height) == (3, 2)
        np.testing.assert_array_equal(samples, pixels)
        assert original_size == 12
        assert not (raw_dir / "broken.bin").exists()
    
    def test_missing_dir(self, tmp_path):
        from medcompress.core.source import DicomExtractor
        
        with pytest.raises(FileNotFoundError):
            DicomExtractor(tmp_path / "none", tmp_path / "raw").extract_all()
    
    @pytest.mark.parametrize("keyword", ["Columns", "Rows", "BitsAllocated"])
    def test_missing_attribute_skips_file(self, tmp_path, keyword):
        from medcompress.core.source import DicomExtractor
        
        dicom_dir = tmp_path / "dicomImages"
        dicom_dir.mkdir()
        self.write_dicom(dicom_dir / "a_bad.dcm", np.zeros(4), rows=2, columns=2, drop=(keyword,))
        self.write_dicom(dicom_dir / "b_good.dcm", np.arange(4), rows=2, columns=2)
        
        raw_dir = tmp_path / "raw"
        records = DicomExtractor(dicom_dir, raw_dir).extract_all()
        
        assert [r.name for r in records] == ["b_good"]
        assert (raw_dir / "b_good.bin").exists()
        assert not (raw_dir / "a_bad.json").exists()
    
    def test_missing_attribute_is_parse_error(self, tmp_path):
        from medcompress.core.source import DicomExtractor
        
        path = tmp_path / "no_columns.dcm"
        self.write_dicom(path, np.zeros(4), rows=2, columns=2, drop=("Columns",))
        with pytest.raises(ParseError, match="no_columns.dcm"):
            DicomExtractor(tmp_path, tmp_path / "raw").extract_file(path)
