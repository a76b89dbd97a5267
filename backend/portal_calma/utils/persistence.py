"""
Persistência em arquivos JSON
Cada tabela é um arquivo com as linhas indexadas por id
"""
import json
import logging
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


class JsonTable:
    """Tabela persistida em disco"""

    def __init__(self, storage_dir: str, table_name: str):
        """
        Args:
            storage_dir: diretório dos arquivos
            table_name: nome da tabela (vira <table_name>.json)
        """
        self.name = table_name
        self.storage_dir = Path(storage_dir)
        self.filepath = self.storage_dir / f'{table_name}.json'
        self._lock = threading.Lock()

        self.storage_dir.mkdir(parents=True, exist_ok=True)
        self._rows: Dict[str, Row] = self._load()

    def _load(self) -> Dict[str, Row]:
        if not self.filepath.exists():
            return {}
        try:
            with open(self.filepath, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.error('Falha ao ler tabela %s: %s, usando tabela vazia', self.filepath, e)
            return {}

    def _save(self, rows: Dict[str, Row]):
        temp_file = self.filepath.with_suffix('.tmp')
        with open(temp_file, 'w', encoding='utf-8') as f:
            json.dump(rows, f, ensure_ascii=False, indent=2, default=str)
        # substituição atômica
        temp_file.replace(self.filepath)

    def _commit(self, rows: Dict[str, Row]):
        # memória só muda depois que o arquivo foi gravado
        self._save(rows)
        self._rows = rows

    def get(self, row_id: str) -> Optional[Row]:
        row = self._rows.get(row_id)
        return dict(row) if row is not None else None

    def insert(self, row: Row) -> Row:
        with self._lock:
            rows = dict(self._rows)
            rows[row['id']] = dict(row)
            self._commit(rows)
        return dict(row)

    def update(self, row_id: str, fields: Row) -> Optional[Row]:
        with self._lock:
            if row_id not in self._rows:
                return None
            updated = {**self._rows[row_id], **fields}
            rows = dict(self._rows)
            rows[row_id] = updated
            self._commit(rows)
            return dict(updated)

    def delete_where(self, predicate: Callable[[Row], bool]) -> int:
        with self._lock:
            kept = {key: row for key, row in self._rows.items() if not predicate(row)}
            removed = len(self._rows) - len(kept)
            if removed:
                self._commit(kept)
        return removed

    def select(self, **filters) -> List[Row]:
        """Linhas cujas colunas são iguais aos filtros informados"""
        return [
            dict(row) for row in self._rows.values()
            if all(row.get(column) == value for column, value in filters.items())
        ]

    def __len__(self) -> int:
        return len(self._rows)

    def __contains__(self, row_id: str) -> bool:
        return row_id in self._rows
