from fastapi.middleware.cors import CORSMiddleware


def configure_cors(app, origins):
    # in production, set CORS_ORIGINS to the actual frontend origins
    if not origins:
        origins = ["http://localhost:3000"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        max_age=86400,
    )
