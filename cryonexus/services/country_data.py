"""Static per-country reference data (economics, risk, displacement)."""

import json
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from cryonexus.logger import get_logger

logger = get_logger(__name__)


class CountryEconomics(BaseModel):
    model_config = ConfigDict(frozen=True)

    gdp: float = 0
    population: float = 0
    poverty_rate: float = 0
    arable_land_pct: float = 0
    energy_use_per_capita: float = 0
    trade_pct_gdp: float = 0


class CountryRisk(BaseModel):
    model_config = ConfigDict(frozen=True)

    risk_score: float = 0
    hazard_exposure: float = 0
    vulnerability: float = 0
    lack_of_coping_capacity: float = 0


class CountryDisplacement(BaseModel):
    model_config = ConfigDict(frozen=True)

    refugees: int = 0
    asylum_seekers: int = 0
    idps: int = 0
    stateless: int = 0


class CountryRecord(BaseModel):
    """Reference record returned by the country lookup endpoint."""

    model_config = ConfigDict(frozen=True)

    name: str
    iso3: str = Field(min_length=3, max_length=3)
    economics: CountryEconomics = Field(default_factory=CountryEconomics)
    risk: CountryRisk = Field(default_factory=CountryRisk)
    displacement: CountryDisplacement = Field(default_factory=CountryDisplacement)


class CountryDataStore:
    """Lazily loaded ISO3 -> CountryRecord mapping backed by a JSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._records: Optional[dict[str, CountryRecord]] = None

    def _load(self) -> dict[str, CountryRecord]:
        if not self.path.exists():
            logger.warning(f"Country data file not found: {self.path}")
            return {}

        with self.path.open(encoding="utf-8") as f:
            raw = json.load(f)

        records = {}
        for iso3, entry in raw.items():
            try:
                record = CountryRecord.model_validate({"iso3": iso3, **entry})
            except ValidationError as e:
                logger.warning(f"Skipping invalid country record {iso3}: {e}")
                continue
            records[record.iso3.upper()] = record

        logger.info(f"Loaded {len(records)} country records from {self.path}")
        return records

    @property
    def records(self) -> dict[str, CountryRecord]:
        if self._records is None:
            self._records = self._load()
        return self._records

    def get(self, iso3: str) -> Optional[CountryRecord]:
        """Look up a country by ISO 3166-1 alpha-3 code, case-insensitively."""
        return self.records.get(iso3.strip().upper())

    def __len__(self) -> int:
        return len(self.records)
