# shopcore/main.py
import uvicorn

from shopcore.api import create_app
from shopcore.data.database import Base, init_db
from shopcore.utils.logging import get_logger

logger = get_logger(__name__)

logger.info("Initializing database...")
init_db()
logger.info(f"Tables in Base.metadata: {list(Base.metadata.tables.keys())}")

app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
