"""
Serverless-function entry point. Same routes as the server; a missing API key
does not abort startup and is reported per request as a configuration error.
"""
from cramitup.main import create_app

app = create_app(exit_without_api_key=False)
