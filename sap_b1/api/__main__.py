"""
sap_b1.api - Run as module

Usage: python -m sap_b1.api
"""

import logging
import os
import uvicorn


def main():
    """Run the API gateway server."""
    host = os.environ.get("SAP_B1_HOST", "0.0.0.0")
    port = int(os.environ.get("SAP_B1_PORT", "5050"))
    log_level = os.environ.get("SAP_B1_LOG_LEVEL", "info")

    logging.basicConfig(level=log_level.upper())
    logging.getLogger("sap_b1").info("Starting Service Layer gateway on %s:%s", host, port)

    uvicorn.run(
        "sap_b1.api:app",
        host=host,
        port=port,
        log_level=log_level,
    )


if __name__ == "__main__":
    main()
