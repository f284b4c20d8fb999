import logging

import config
import pytest
import smartcommit as sc

from libb import Setting

logger = logging.getLogger(__name__)


@pytest.fixture(scope='session')
def psql_docker(request):
    """Session-scoped PostgreSQL container using testcontainers.

    Tests depending on it are skipped when testcontainers is not installed
    or no container runtime is reachable.
    """
    postgres = pytest.importorskip('testcontainers.postgres')
    container = postgres.PostgresContainer(
        image='postgres:16',
        username=config.postgresql.username,
        password=config.postgresql.password,
        dbname=config.postgresql.database,
    )

    try:
        container.start()
    except Exception as e:
        pytest.skip(f'PostgreSQL container unavailable: {e}')

    Setting.unlock()
    config.postgresql.hostname = container.get_container_host_ip()
    config.postgresql.port = int(container.get_exposed_port(5432))
    Setting.lock()

    logger.info(
        f'PostgreSQL container started at '
        f'{config.postgresql.hostname}:{config.postgresql.port}'
    )

    def finalizer():
        try:
            container.stop()
            logger.info('PostgreSQL container stopped')
        except Exception as e:
            logger.warning(f'Error stopping container: {e}')

    request.addfinalizer(finalizer)
    return container


def stage_test_data(cn):
    with cn.cursor() as cursor:
        cursor.execute('drop table if exists test_table')
        cursor.execute("""
create table test_table (
    id serial not null,
    name varchar(255) not null,
    value integer not null,
    primary key (name)
)
""")
        cursor.execute("""
insert into test_table (name, value) values
('Alice', 10),
('Bob', 20),
('Charlie', 30)
""")


@pytest.fixture
def conn(psql_docker):
    """
    Connection fixture with function scope for clean tests.
    Each test gets a fresh connection with reset test data.
    """
    cn = sc.connect('postgresql', config=config)
    try:
        stage_test_data(cn)
        yield cn
    finally:
        try:
            if not cn.autocommit:
                cn.rollback()
            cn.close()
        except Exception as e:
            logger.warning(f'Error during connection cleanup: {e}')
