from chat_proxy.main import run

run()
