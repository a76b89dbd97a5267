"""
Configuração do Portal Calma
Configurações do backend de questionários, carregadas do .env
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# Carrega variáveis de ambiente
env_path = Path(__file__).parent.parent / '.env'
if env_path.exists():
    load_dotenv(env_path)
else:
    load_dotenv()

BACKEND_DIR = Path(__file__).resolve().parent.parent
PROJECT_ROOT = BACKEND_DIR.parent

# Fonte dos dados: "local" (arquivos JSON) ou "supabase" (PostgREST)
ROW_BACKEND = os.getenv('ROW_BACKEND', 'local').lower()
DATA_DIR = os.getenv('DATA_DIR', str(PROJECT_ROOT / 'data' / 'questionnaires'))

SUPABASE_URL = os.getenv('SUPABASE_URL', '')
SUPABASE_KEY = os.getenv('SUPABASE_KEY', '')
SUPABASE_TIMEOUT = float(os.getenv('SUPABASE_TIMEOUT', '30'))  # segundos

# Empresa usada quando não há sessão (modo local)
DEFAULT_COMPANY_ID = os.getenv('DEFAULT_COMPANY_ID', '')

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        'CORS_ORIGINS',
        'http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173',
    ).split(',')
    if origin.strip()
]

# Rótulos e janelas do painel
UNSPECIFIED_DEPARTMENT = 'Não Informado'
REALTIME_DEFAULT_DEPARTMENT = 'Geral'
NO_RESPONSE_LABEL = 'Nenhuma resposta'
EVOLUTION_WINDOW_DAYS = 30
ESTIMATED_DEPARTMENTS_PER_QUESTIONNAIRE = 5
DEFAULT_QUESTIONNAIRE_TITLE = 'Questionário de Bem-Estar Padrão'
DATE_DISPLAY_FORMAT = '%d/%m/%Y'

if ROW_BACKEND not in ('local', 'supabase'):
    raise ValueError(f"ROW_BACKEND inválido: {ROW_BACKEND} (use 'local' ou 'supabase')")

if ROW_BACKEND == 'supabase' and not (SUPABASE_URL and SUPABASE_KEY):
    raise ValueError(
        "ROW_BACKEND=supabase exige SUPABASE_URL e SUPABASE_KEY. "
        "Configure-as no ambiente ou no arquivo .env."
    )
