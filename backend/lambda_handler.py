from mangum import Mangum
from main import app

# AWS Lambda entrypoint using API Gateway HTTP API. Requests are buffered,
# which matches the relay: responses are never streamed.
handler = Mangum(app)
