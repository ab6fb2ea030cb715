import logging
from contextlib import asynccontextmanager

import stripe
from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.concurrency import run_in_threadpool

from plantnet.auth import TokenVerifier
from plantnet.config import Settings
from plantnet.database import build_engine, build_session_factory, init_db
from plantnet.errors import OrdersNotFound, register_error_handlers
from plantnet.reconciliation import OrderReconciler, get_reconciler
from plantnet.routes import admin, orders, payments, plants, users
from plantnet.stripe_service import StripeGateway

logger = logging.getLogger(__name__)


def create_app(settings: Settings = None) -> FastAPI:
    settings = settings or Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = build_engine(settings.database_url)
        init_db(engine)
        app.state.engine = engine
        app.state.session_factory = build_session_factory(engine)
        logger.info("Connected to %s", engine.url.render_as_string(hide_password=True))
        try:
            yield
        finally:
            engine.dispose()
            logger.info("Database connections released")

    app = FastAPI(title="PlantNet Marketplace API", lifespan=lifespan)
    app.state.settings = settings
    app.state.gateway = StripeGateway(settings.stripe_secret_key, currency=settings.currency)
    app.state.token_verifier = TokenVerifier(
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        audience=settings.token_audience,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.domain_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    for module in (plants, orders, payments, users, admin):
        app.include_router(module.router)

    @app.get("/")
    def root():
        return {"message": "PlantNet Server Running.."}

    @app.post("/webhook")
    async def stripe_webhook(
        request: Request,
        stripe_signature: str = Header(None),
        reconciler: OrderReconciler = Depends(get_reconciler)
    ):
        payload = await request.body()

        try:
            event = stripe.Webhook.construct_event(
                payload,
                stripe_signature,
                settings.stripe_webhook_secret
            )
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid payload")
        except stripe.SignatureVerificationError:
            raise HTTPException(status_code=400, detail="Invalid signature")

        if event["type"] == "checkout.session.completed":
            session = event["data"]["object"]
            if session.get("payment_status") == "paid":
                try:
                    await run_in_threadpool(reconciler.confirm_payment, session["id"])
                except OrdersNotFound:
                    logger.warning("Webhook for unknown checkout session %s ignored", session["id"])

        return {"ok": True}

    return app


def run():
    import uvicorn

    settings = Settings.from_env()
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
