"""Engine configuration loader with validation and state machine."""

import hashlib
import json
import time
from pathlib import Path

import structlog
import yaml
from pydantic import ValidationError

from src.config.constants import COMPONENT_CONFIG
from src.config.schemas.engine import EngineConfig
from src.config.state_machine import ConfigState, ConfigStateMachine


logger = structlog.get_logger()


class ConfigLoader:
    """Loads and validates the engine configuration file.

    Implements a state machine for configuration loading:
    UNLOADED -> LOADING -> VALIDATED -> READY

    The returned EngineConfig is immutable.
    """

    def __init__(self, run_id: str) -> None:
        """Initialize the loader.

        Args:
            run_id: Unique identifier for the current run.
        """
        self._run_id = run_id
        self._state_machine = ConfigStateMachine(run_id)
        self._config: EngineConfig | None = None
        self._file_checksum: str | None = None
        self._validation_errors: list[dict[str, str]] = []
        self._validation_duration_ms: float = 0

    @property
    def state(self) -> ConfigState:
        """Get the current loader state."""
        return self._state_machine.state

    @property
    def config(self) -> EngineConfig | None:
        """Get the last successfully loaded configuration."""
        return self._config

    @property
    def file_checksum(self) -> str | None:
        """Get SHA-256 checksum of the loaded file."""
        return self._file_checksum

    @property
    def validation_errors(self) -> list[dict[str, str]]:
        """Get validation errors if any."""
        return self._validation_errors.copy()

    @property
    def validation_duration_ms(self) -> float:
        """Get validation duration in milliseconds."""
        return self._validation_duration_ms

    def load(self, config_path: Path) -> EngineConfig:
        """Load and validate the engine configuration file.

        Args:
            config_path: Path to the YAML (or JSON) engine file.

        Returns:
            Validated EngineConfig.

        Raises:
            ValidationError: If the content does not match the schema.
            FileNotFoundError: If the file does not exist.
            yaml.YAMLError: If the file cannot be parsed.
            ConfigStateError: If called in invalid state.
        """
        start_time = time.perf_counter()
        self._validation_errors = []

        self._state_machine.transition(ConfigState.LOADING)

        log = logger.bind(
            run_id=self._run_id,
            component=COMPONENT_CONFIG,
            file_path=str(config_path),
        )
        log.info("loading_config_file")

        try:
            content_bytes = config_path.read_bytes()
            self._file_checksum = hashlib.sha256(content_bytes).hexdigest()
            data = yaml.safe_load(content_bytes.decode("utf-8")) or {}
            config = EngineConfig.model_validate(data)
        except ValidationError as e:
            self._handle_validation_error(e, log)
            raise
        except FileNotFoundError as e:
            self._record_failure("file", str(e), "file_not_found", log)
            raise
        except yaml.YAMLError as e:
            self._record_failure("yaml", str(e), "yaml_parse_error", log)
            raise

        self._state_machine.transition(ConfigState.VALIDATED)
        self._validation_duration_ms = (time.perf_counter() - start_time) * 1000

        log.info(
            "config_validation_complete",
            file_sha256=self._file_checksum,
            source_count=len(config.sources),
            category_count=len(config.categories),
            sort=config.sort.value,
            cap=config.cap,
            config_validation_duration_ms=round(self._validation_duration_ms, 2),
        )

        self._config = config
        self._state_machine.transition(ConfigState.READY)
        return config

    def _handle_validation_error(
        self,
        error: ValidationError,
        log: structlog.stdlib.BoundLogger,
    ) -> None:
        """Handle Pydantic validation error."""
        self._state_machine.transition(ConfigState.FAILED)

        for err in error.errors():
            self._validation_errors.append(
                {
                    "loc": ".".join(str(loc) for loc in err["loc"]) or "root",
                    "msg": err["msg"],
                    "type": err["type"],
                }
            )

        log.error(
            "config_validation_failed",
            validation_error_count=len(self._validation_errors),
            errors=self._validation_errors,
        )

    def _record_failure(
        self,
        loc: str,
        message: str,
        error_type: str,
        log: structlog.stdlib.BoundLogger,
    ) -> None:
        """Record a read or parse failure."""
        self._state_machine.transition(ConfigState.FAILED)
        self._validation_errors.append({"loc": loc, "msg": message, "type": error_type})
        log.error("config_load_failed", error_type=error_type, error=message)

    def get_validation_summary(self) -> dict[str, object]:
        """Get a summary of the validation process.

        Returns:
            Dictionary with validation summary.
        """
        summary: dict[str, object] = {
            "run_id": self._run_id,
            "state": self._state_machine.state.name,
            "file_sha256": self._file_checksum,
            "validation_error_count": len(self._validation_errors),
            "validation_errors": self._validation_errors,
            "validation_duration_ms": self._validation_duration_ms,
        }
        if self._config is not None:
            summary["sources_count"] = len(self._config.sources)
            summary["enabled_sources_count"] = len(self._config.get_enabled_sources())
            summary["categories"] = self._config.category_names
            summary["sort"] = self._config.sort.value
            summary["cap"] = self._config.cap
            summary["scoring_strategy"] = self._config.scoring.strategy.value
        return summary

    def get_validation_summary_json(self) -> str:
        """Get validation summary as JSON string with stable ordering."""
        return json.dumps(self.get_validation_summary(), sort_keys=True, indent=2)
