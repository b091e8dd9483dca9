"""FastAPI main application for the Menteur backend"""

import logging
import os

from .rules import create_rules
from .ws.server import create_app

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "info").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

rules = create_rules(variant=os.getenv("MENTEUR_VARIANT", "menteur"))
app = create_app(rules)
logger.info(f"Menteur backend ready (variant={rules.variant})")

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
