from pitchcoach.config import Config
from pitchcoach.logging_setup import setup_logging


def main():
    setup_logging(Config.LOG_LEVEL)

    import uvicorn
    uvicorn.run("pitchcoach.main:app", host=Config.HOST, port=Config.PORT, log_level=Config.LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
