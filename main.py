from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
import logging
import os
from dotenv import load_dotenv

# import modules
import auth
import uploads
from database import init_db
from errors import register_exception_handlers
from routers import (owner_auth, site_user_auth, shops, categories, food, places,
                     place_categories, comments, place_comments, favourites)

# INITIAL CONFIGURATION
load_dotenv()

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"),
                    format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

CLIENT_URL = os.getenv("CLIENT_URL", "http://localhost:5173")

# STARTUP LOGIC (connect the database)
@asynccontextmanager
async def lifespan(app: FastAPI):
    if not auth.SECRET_KEY:
        raise RuntimeError("SECRET_KEY is not set")
    logger.info("Connecting to the database...")
    await init_db()
    yield
    logger.info("Server shut down")

app = FastAPI(title="Places Guide API", lifespan=lifespan)

# CORS CONFIGURATION (cookies for shop owners, so no wildcard origin)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[CLIENT_URL],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
)

register_exception_handlers(app)

for module in (owner_auth, site_user_auth, shops, categories, food, places,
               place_categories, comments, place_comments, favourites):
    app.include_router(module.router)

app.mount("/uploads", StaticFiles(directory=uploads.UPLOAD_DIR, check_dir=False), name="uploads")


@app.get("/")
async def root():
    return {"status": "Server running"}


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
