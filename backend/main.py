import logging
import os

from agentflow.app import create_app

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = app.state.settings
    # Bind to 0.0.0.0 for Cloud Run/containers.
    logging.getLogger(__name__).info("AgentFlow API proxy listening on http://%s:%s", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)
