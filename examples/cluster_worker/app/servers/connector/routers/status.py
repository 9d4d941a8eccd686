"""Status endpoint reporting which worker answered."""


def create_router(app, http, component):
    router = http.APIRouter()

    @router.get("/status")
    async def status() -> dict:
        return {
            "server_id": app.get_server_id(),
            "port": component.port,
            "ssl": component.use_ssl,
        }

    return router
