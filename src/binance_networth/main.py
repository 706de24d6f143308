import logging

import uvicorn

from . import settings


def main() -> None:
	host = settings.get_networth_host()
	port = settings.get_networth_port()
	reload = settings.get_networth_reload()

	logging.basicConfig(
		level=settings.get_log_level(),
		format="%(asctime)s %(levelname)s %(name)s: %(message)s",
	)

	uvicorn.run(
		"binance_networth.balance_api:app",
		host=host,
		port=port,
		reload=reload,
	)


if __name__ == "__main__":
	main()
