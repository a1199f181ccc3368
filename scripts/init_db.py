from tailorshop.config import Settings
from tailorshop.db.engine import create_db_engine
from tailorshop.db.schema import metadata


def main():
    settings = Settings.from_env()
    engine = create_db_engine(settings.database_url)
    metadata.drop_all(engine)
    metadata.create_all(engine)
    print(f"DB schema created at {settings.database_url}.")


if __name__ == "__main__":
    main()
