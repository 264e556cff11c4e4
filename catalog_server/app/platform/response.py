# catalog_server/app/platform/response.py
from catalog_server.app.platform.logging import request_id_ctx

def ok(data=None, message="ok"):
    return {"success": True, "message": message, "data": data, "trace_id": request_id_ctx.get()}

def partial(data=None, message="partial"):
    return {"success": False, "message": message, "data": data, "trace_id": request_id_ctx.get()}
