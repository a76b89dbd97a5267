"""
Acesso às tabelas de questionários
LocalRowStore guarda as tabelas em arquivos JSON; SupabaseRowStore consulta a
API REST (PostgREST) do Supabase
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import requests

from portal_calma import config
from portal_calma.utils.errors import FetchFailure
from portal_calma.utils.persistence import JsonTable

logger = logging.getLogger(__name__)

Row = Dict[str, Any]

QUESTIONNAIRES = 'questionnaires'
RESPONSES = 'questionnaire_responses'
ANALYTICS = 'questionnaire_analytics'
USER_PROFILES = 'user_profiles'

TABLES = (QUESTIONNAIRES, RESPONSES, ANALYTICS, USER_PROFILES)


class RowStore(ABC):
    """Consultas por tabela, filtros de igualdade e ordenação"""

    @abstractmethod
    def select(self, table: str, filters: Optional[Row] = None,
               order_by: Optional[str] = None, descending: bool = False) -> List[Row]:
        ...

    @abstractmethod
    def insert(self, table: str, row: Row) -> Row:
        ...

    @abstractmethod
    def update(self, table: str, row_id: str, fields: Row) -> Optional[Row]:
        ...

    @abstractmethod
    def delete(self, table: str, filters: Row) -> None:
        ...

    def get(self, table: str, row_id: str) -> Optional[Row]:
        rows = self.select(table, {'id': row_id})
        return rows[0] if rows else None


class LocalRowStore(RowStore):
    """Tabelas em arquivos JSON (desenvolvimento e testes)"""

    def __init__(self, data_dir: str):
        self.data_dir = data_dir
        self._tables = {name: JsonTable(data_dir, name) for name in TABLES}

    def _table(self, table: str) -> JsonTable:
        if table not in self._tables:
            raise FetchFailure(table, 'tabela desconhecida')
        return self._tables[table]

    def select(self, table, filters=None, order_by=None, descending=False):
        rows = self._table(table).select(**(filters or {}))
        if order_by:
            rows.sort(key=lambda row: row.get(order_by) or '', reverse=descending)
        return rows

    def insert(self, table, row):
        return self._table(table).insert(row)

    def update(self, table, row_id, fields):
        return self._table(table).update(row_id, fields)

    def delete(self, table, filters):
        self._table(table).delete_where(
            lambda row: all(row.get(column) == value for column, value in filters.items())
        )


class SupabaseRowStore(RowStore):
    """Tabelas do Supabase via PostgREST, com sessão HTTP reaproveitada"""

    def __init__(self, base_url: str, api_key: str, timeout: float = config.SUPABASE_TIMEOUT,
                 session: Optional[requests.Session] = None):
        self.rest_url = base_url.rstrip('/') + '/rest/v1'
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            'apikey': api_key,
            'Authorization': f'Bearer {api_key}',
            'Content-Type': 'application/json',
        })

    @staticmethod
    def _filters(filters: Optional[Row]) -> Dict[str, str]:
        return {column: f'eq.{value}' for column, value in (filters or {}).items()}

    def _request(self, method: str, table: str, **kwargs) -> Any:
        url = f'{self.rest_url}/{table}'
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise FetchFailure(table, f'{type(exc).__name__}: {exc}') from exc

        if not resp.ok:
            try:
                detail = resp.json().get('message') or resp.text
            except ValueError:
                detail = resp.text
            raise FetchFailure(table, f'HTTP {resp.status_code}: {detail}')

        if not resp.content:
            return None
        return resp.json()

    def select(self, table, filters=None, order_by=None, descending=False):
        params = {'select': '*', **self._filters(filters)}
        if order_by:
            params['order'] = f"{order_by}.{'desc' if descending else 'asc'}"
        return self._request('GET', table, params=params) or []

    def insert(self, table, row):
        rows = self._request('POST', table, json=[row], headers={'Prefer': 'return=representation'})
        return rows[0] if rows else row

    def update(self, table, row_id, fields):
        rows = self._request('PATCH', table, params=self._filters({'id': row_id}), json=fields,
                             headers={'Prefer': 'return=representation'})
        return rows[0] if rows else None

    def delete(self, table, filters):
        self._request('DELETE', table, params=self._filters(filters))


def create_row_store() -> RowStore:
    """Cria o store configurado em ROW_BACKEND"""
    if config.ROW_BACKEND == 'supabase':
        logger.info('Usando Supabase: %s', config.SUPABASE_URL)
        return SupabaseRowStore(config.SUPABASE_URL, config.SUPABASE_KEY)
    logger.info('Usando armazenamento local: %s', config.DATA_DIR)
    return LocalRowStore(config.DATA_DIR)
