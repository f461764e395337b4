# arpolar_core/webapp/serve.py
"""Script para executar o servidor web do Arpolar Core."""

import os

import uvicorn
from dotenv import load_dotenv

# Carrega automaticamente as variaveis do arquivo .env
load_dotenv()


def main() -> None:
    """Inicia o servidor web do Arpolar Core."""
    uvicorn.run(
        "arpolar_core.webapp.app:create_app",
        factory=True,
        host=os.environ.get("ARPOLAR_HOST", "0.0.0.0"),
        port=int(os.environ.get("ARPOLAR_PORT", "8000")),
        reload=os.environ.get("ARPOLAR_RELOAD", "0") == "1",
        log_level="info",
    )


if __name__ == "__main__":
    main()
