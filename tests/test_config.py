"""Tests for media_transcriber.config and media_transcriber.utils.naming."""

import pytest

from media_transcriber.config import (
    MIB,
    PollConfig,
    Settings,
    UploadConfig,
)
from media_transcriber.utils.errors import ConfigurationError
from media_transcriber.utils.naming import (
    MAX_JOB_NAME_LENGTH,
    generate_job_name,
    generate_object_key,
)


class TestDefaults:
    """Defaults match the documented pipeline constants."""

    def test_upload_defaults(self) -> None:
        config = UploadConfig()
        assert config.multipart_threshold == 50 * MIB
        assert config.part_size == 8 * MIB
        assert config.key_prefix == "transcribe-temp"

    def test_poll_defaults(self) -> None:
        config = PollConfig()
        assert config.initial_interval == 5
        assert config.max_interval == 30
        assert config.max_attempts == 120

    def test_settings_defaults(self) -> None:
        settings = Settings()
        assert settings.language_code == "en-US"
        assert settings.job_name_prefix == "transcribe-job"
        assert settings.validation.max_file_size == 2 * 1024 * MIB
        assert "m4a" in settings.validation.supported_extensions


class TestValidation:
    """Out-of-range values are rejected at construction."""

    def test_part_size_below_s3_minimum(self) -> None:
        with pytest.raises(ConfigurationError, match="part_size"):
            UploadConfig(part_size=1 * MIB)

    def test_non_positive_threshold(self) -> None:
        with pytest.raises(ConfigurationError):
            UploadConfig(multipart_threshold=0)

    def test_zero_attempts(self) -> None:
        with pytest.raises(ConfigurationError):
            PollConfig(max_attempts=0)


class TestFromEnv:
    """Tests for Settings.from_env()."""

    def test_empty_environment_gives_defaults(self) -> None:
        assert Settings.from_env({}) == Settings()

    def test_overrides_are_applied(self) -> None:
        settings = Settings.from_env(
            {
                "TRANSCRIBER_MULTIPART_THRESHOLD": str(100 * MIB),
                "TRANSCRIBER_PART_SIZE": str(16 * MIB),
                "TRANSCRIBER_POLL_INITIAL_INTERVAL": "2.5",
                "TRANSCRIBER_POLL_MAX_ATTEMPTS": "10",
                "TRANSCRIBER_LANGUAGE_CODE": "de-DE",
                "TRANSCRIBER_KEY_PREFIX": "staging",
                "AWS_REGION": "eu-west-1",
            }
        )
        assert settings.upload.multipart_threshold == 100 * MIB
        assert settings.upload.part_size == 16 * MIB
        assert settings.upload.key_prefix == "staging"
        assert settings.poll.initial_interval == 2.5
        assert settings.poll.max_attempts == 10
        assert settings.language_code == "de-DE"
        assert settings.region_name == "eu-west-1"

    def test_default_region_fallback(self) -> None:
        settings = Settings.from_env({"AWS_DEFAULT_REGION": "us-west-2"})
        assert settings.region_name == "us-west-2"

    def test_garbage_number_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="TRANSCRIBER_PART_SIZE"):
            Settings.from_env({"TRANSCRIBER_PART_SIZE": "eight"})


class TestNaming:
    """Tests for object key and job name generation."""

    def test_object_key_format(self) -> None:
        key = generate_object_key("/videos/My Talk.mp4", now=1700000000)
        assert key == "transcribe-temp/1700000000-My Talk.mp4"

    def test_object_key_custom_prefix(self) -> None:
        key = generate_object_key("clip.wav", prefix="tmp/", now=42.9)
        assert key == "tmp/42-clip.wav"

    def test_job_name_format(self) -> None:
        name = generate_job_name("/videos/interview.mov", now=1700000000)
        assert name == "transcribe-job-1700000000-interview"

    def test_job_name_sanitizes_stem(self) -> None:
        name = generate_job_name("/videos/My Talk (final).mp4", now=1)
        assert name == "transcribe-job-1-My_Talk_final"

    def test_job_name_sanitizes_prefix(self) -> None:
        name = generate_job_name("/videos/clip.mp4", prefix="my job", now=1)
        assert name == "my_job-1-clip"

    def test_job_name_blank_prefix_uses_default(self) -> None:
        name = generate_job_name("/videos/clip.mp4", prefix="  ", now=1)
        assert name == "transcribe-job-1-clip"

    def test_job_name_length_is_capped(self) -> None:
        name = generate_job_name("x" * 500 + ".mp4", now=1)
        assert len(name) == MAX_JOB_NAME_LENGTH

    def test_job_name_falls_back_for_unusable_stem(self) -> None:
        name = generate_job_name("/videos/???.mp4", now=1)
        assert name == "transcribe-job-1-unknown"
