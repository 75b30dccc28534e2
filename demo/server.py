import logging

import uvicorn
from dotenv import load_dotenv

from portfolio_x402.config import ServerConfig
from portfolio_x402.server import create_analyst, create_app

load_dotenv()
logging.basicConfig(level=logging.INFO, format="portfolio_x402 %(levelname)s: %(message)s")

config = ServerConfig.from_env()
analyst = create_analyst(config)
if analyst is None:
    print("ZERION_API_KEY / GROQ_API_KEY not set: analysis routes will answer 503")

app = create_app(config, analyst=analyst)


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=config.port)
