"""Tags every response with the worker that served it; mounts no routes."""


def create_router(app, http, component):
    server_id = app.get_server_id()

    # After filters are read once all route modules are loaded
    @component.filters.after
    def served_by(request, response):
        response.headers["x-served-by"] = server_id

    return None
