# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# SPDX-License-Identifier: MIT
#

import uvicorn

from smartplate.config import settings

if __name__ == "__main__":
    uvicorn.run("smartplate.app:app", host=settings.host, port=settings.port, log_level=settings.log_level.lower())
