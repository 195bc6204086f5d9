from typing import List, Any, Optional
from pathlib import Path
import json
import logging

import pandas as pd

from .inventory_model import InventoryModel

logger = logging.getLogger(__name__)

PIPE_COLUMNS = ['id', 'name', 'length', 'diameter', 'under_repair']
STATION_COLUMNS = ['id', 'name', 'total_workshops', 'active_workshops', 'station_class', 'inactive_percent']


class InventoryExporter:
    """Tabular views of inventory records, for display and CSV/JSON export."""

    @staticmethod
    def to_dataframe(records: List[Any], columns: List[str]) -> pd.DataFrame:
        """Build a DataFrame from records' to_dict(), keeping columns even when empty."""
        return pd.DataFrame([item.to_dict() for item in records], columns=columns)

    @classmethod
    def pipes_frame(cls, pipes: List[Any]) -> pd.DataFrame:
        return cls.to_dataframe(pipes, PIPE_COLUMNS)

    @classmethod
    def stations_frame(cls, stations: List[Any]) -> pd.DataFrame:
        return cls.to_dataframe(stations, STATION_COLUMNS)

    @classmethod
    def render_human(cls, pipes: Optional[List[Any]] = None, stations: Optional[List[Any]] = None) -> str:
        """Render pipes and/or stations as aligned text tables."""
        sections = []
        if pipes:
            frame = cls.pipes_frame(pipes)
            frame['under_repair'] = frame['under_repair'].map({True: 'yes', False: 'no'})
            sections.append(f"Pipes ({len(pipes)})\n{frame.to_string(index=False)}")
        if stations:
            frame = cls.stations_frame(stations)
            sections.append(f"Compressor stations ({len(stations)})\n"
                            f"{frame.to_string(index=False, float_format=lambda v: f'{v:.1f}')}")
        if not sections:
            return "No records to display."
        return "\n\n".join(sections)

    @classmethod
    def render_csv(cls, pipes: Optional[List[Any]] = None, stations: Optional[List[Any]] = None) -> str:
        """CSV text, one block per record type, each block with its own header."""
        blocks = []
        if pipes is not None:
            blocks.append(cls.pipes_frame(pipes).to_csv(index=False))
        if stations is not None:
            blocks.append(cls.stations_frame(stations).to_csv(index=False))
        return "\n".join(blocks)

    @classmethod
    def render_json(cls, pipes: Optional[List[Any]] = None, stations: Optional[List[Any]] = None) -> str:
        data = {}
        if pipes is not None:
            data['pipes'] = [p.to_dict() for p in pipes]
        if stations is not None:
            data['stations'] = [s.to_dict() for s in stations]
        return json.dumps(data, indent=2, ensure_ascii=False)

    @classmethod
    def render(cls, fmt: str, pipes: Optional[List[Any]] = None, stations: Optional[List[Any]] = None) -> str:
        if fmt == 'csv':
            return cls.render_csv(pipes, stations)
        if fmt == 'json':
            return cls.render_json(pipes, stations)
        return cls.render_human(pipes, stations)

    @classmethod
    def save_csv(cls, model: InventoryModel, directory: str) -> List[Path]:
        """Write pipes.csv and stations.csv into directory."""
        out_dir = Path(directory)
        out_dir.mkdir(parents=True, exist_ok=True)
        pipes_path = out_dir / 'pipes.csv'
        stations_path = out_dir / 'stations.csv'
        cls.pipes_frame(model.pipes.all()).to_csv(pipes_path, index=False)
        cls.stations_frame(model.stations.all()).to_csv(stations_path, index=False)
        logger.info(f"Exported {len(model.pipes)} pipes and {len(model.stations)} stations to {out_dir}")
        return [pipes_path, stations_path]
