from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .config import Settings


@dataclass(frozen=True, slots=True)
class DataLayout:
    """
    Canonical path layout for a build:

      {downloads}/**/*.zip
      {reference}/noc.csv
      {reference}/operator-overrides.json
      {out}/stop_to_services.json
      {out}/build_metadata.json
      {out}/shards/{prefix}.json

    downloads, reference and out default to subdirectories of {root}.
    """

    root: Path
    downloads: Path | None = None
    reference: Path | None = None
    out: Path | None = None
    noc_csv_name: str = "noc.csv"
    overrides_name: str = "operator-overrides.json"
    output_name: str = "stop_to_services.json"

    @classmethod
    def from_settings(cls, s: Settings) -> "DataLayout":
        return cls(
            root=Path(s.data_root),
            downloads=s.downloads_dir,
            reference=s.reference_dir,
            out=s.out_dir,
            noc_csv_name=s.noc_csv_name,
            overrides_name=s.overrides_name,
            output_name=s.output_name,
        )

    def downloads_root(self) -> Path:
        return Path(self.downloads) if self.downloads else self.root / "downloads"

    def reference_root(self) -> Path:
        return Path(self.reference) if self.reference else self.root / "reference"

    def out_root(self) -> Path:
        return Path(self.out) if self.out else self.root / "out"

    def noc_csv(self) -> Path:
        return self.reference_root() / self.noc_csv_name

    def overrides_json(self) -> Path:
        return self.reference_root() / self.overrides_name

    def output_json(self) -> Path:
        return self.out_root() / self.output_name

    def build_metadata_json(self) -> Path:
        return self.out_root() / "build_metadata.json"

    def shards(self) -> Path:
        return self.out_root() / "shards"
