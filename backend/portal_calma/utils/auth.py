"""
Identificação da empresa (tenant) da sessão atual
"""
import logging
from abc import ABC, abstractmethod
from typing import Optional

import requests

from portal_calma import config
from portal_calma.utils.errors import FetchFailure, TenantResolutionFailure
from portal_calma.utils.row_store import USER_PROFILES, RowStore

logger = logging.getLogger(__name__)


class TenantResolver(ABC):

    @abstractmethod
    def resolve(self, access_token: Optional[str] = None, fallback_company_id: Optional[str] = None) -> str:
        """Retorna o company_id ou levanta TenantResolutionFailure"""


class StaticTenantResolver(TenantResolver):
    """Empresa fixa (modo local); o cabeçalho X-Company-Id tem prioridade"""

    def __init__(self, company_id: str = config.DEFAULT_COMPANY_ID):
        self.company_id = company_id

    def resolve(self, access_token=None, fallback_company_id=None):
        company_id = fallback_company_id or self.company_id
        if not company_id:
            raise TenantResolutionFailure('Nenhuma empresa configurada para a sessão')
        return company_id


class SupabaseTenantResolver(TenantResolver):
    """
    Resolve a empresa a partir do token do Supabase Auth.

    Ordem: usuário autenticado -> user_profiles.company_id -> id do próprio
    usuário. Sem usuário válido a resolução falha; o X-Company-Id enviado pelo
    cliente precisa ser o da empresa do usuário.
    """

    def __init__(self, base_url: str, api_key: str, store: RowStore,
                 timeout: float = config.SUPABASE_TIMEOUT, session: Optional[requests.Session] = None):
        self.auth_url = base_url.rstrip('/') + '/auth/v1/user'
        self.api_key = api_key
        self.store = store
        self.timeout = timeout
        self.session = session or requests.Session()

    def _fetch_user_id(self, access_token: str) -> Optional[str]:
        try:
            resp = self.session.get(
                self.auth_url,
                headers={'apikey': self.api_key, 'Authorization': f'Bearer {access_token}'},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning('Falha ao consultar Supabase Auth: %s', exc)
            return None
        if not resp.ok:
            logger.warning('Supabase Auth recusou o token: HTTP %s', resp.status_code)
            return None
        return resp.json().get('id')

    def resolve(self, access_token=None, fallback_company_id=None):
        user_id = self._fetch_user_id(access_token) if access_token else None
        if not user_id:
            raise TenantResolutionFailure('Nenhum usuário autenticado')

        company_id = self._company_of(user_id)

        # o cabeçalho só é aceito quando confere com a empresa do token
        if fallback_company_id and fallback_company_id != company_id:
            logger.warning('X-Company-Id %s não pertence ao usuário %s (empresa %s)',
                           fallback_company_id, user_id, company_id)
            raise TenantResolutionFailure('Empresa informada não pertence ao usuário autenticado')
        return company_id

    def _company_of(self, user_id: str) -> str:
        try:
            profiles = self.store.select(USER_PROFILES, {'user_id': user_id})
        except FetchFailure as exc:
            logger.warning('Falha ao buscar perfil do usuário %s: %s', user_id, exc)
            profiles = []

        for profile in profiles:
            if profile.get('company_id'):
                return profile['company_id']

        # empresas sem perfil usam o próprio id do usuário
        return user_id


def create_tenant_resolver(store: RowStore) -> TenantResolver:
    if config.ROW_BACKEND == 'supabase':
        return SupabaseTenantResolver(config.SUPABASE_URL, config.SUPABASE_KEY, store)
    return StaticTenantResolver()
