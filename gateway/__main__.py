import uvicorn

from gateway.vars import HOST, PORT

if __name__ == "__main__":
    uvicorn.run("gateway.server:app", host=HOST, port=PORT)
