"""Database schema for the dashboard.

Statements are idempotent so ``python -m seed.run`` can be re-run on an
existing database.
"""

from core.config import JobsConfig


SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS users (
        id uuid PRIMARY KEY,
        username text NOT NULL UNIQUE,
        full_name text,
        descr text,
        pwhash text,
        inactive boolean NOT NULL DEFAULT false
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS sessions (
        id uuid PRIMARY KEY,
        userid uuid NOT NULL REFERENCES users(id),
        issued timestamp NOT NULL,
        expires timestamp,
        inactive boolean NOT NULL DEFAULT false
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS roles (
        id serial PRIMARY KEY,
        role_name text NOT NULL UNIQUE,
        sort integer NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS capabilities (
        id serial PRIMARY KEY,
        cap_name text NOT NULL UNIQUE,
        description text
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS rolecapabilities (
        roleid integer NOT NULL REFERENCES roles(id),
        capabilityid integer NOT NULL REFERENCES capabilities(id),
        PRIMARY KEY (roleid, capabilityid)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS userroles (
        userid uuid NOT NULL REFERENCES users(id),
        roleid integer NOT NULL REFERENCES roles(id),
        PRIMARY KEY (userid, roleid)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS person (
        id bigint GENERATED ALWAYS AS IDENTITY PRIMARY KEY,
        name text NOT NULL,
        ssn text,
        phone text,
        county text,
        town text,
        address text,
        postal_code text
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS company (
        id bigint GENERATED ALWAYS AS IDENTITY PRIMARY KEY,
        name text NOT NULL,
        ssn text,
        phone text,
        county text,
        town text,
        address text,
        postal_code text
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS client (
        id bigint GENERATED ALWAYS AS IDENTITY PRIMARY KEY,
        person_id bigint REFERENCES person(id) ON DELETE SET NULL,
        company_id bigint REFERENCES company(id) ON DELETE SET NULL,
        type text NOT NULL CHECK (type IN ('personal', 'company')),
        status text NOT NULL DEFAULT 'not_started'
            CHECK (status IN ('done', 'paused', 'not_started'))
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS pre_order (
        id bigint GENERATED ALWAYS AS IDENTITY PRIMARY KEY,
        client_id bigint NOT NULL REFERENCES client(id),
        client_name text NOT NULL,
        type text NOT NULL,
        description text NOT NULL,
        estimated_amount numeric,
        status text NOT NULL DEFAULT 'pending'
            CHECK (status IN ('pending', 'approved', 'rejected', 'converted')),
        created_at timestamptz NOT NULL DEFAULT now()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS "order" (
        id bigint GENERATED ALWAYS AS IDENTITY PRIMARY KEY,
        order_number text NOT NULL UNIQUE,
        client_id bigint NOT NULL REFERENCES client(id),
        pre_order_id bigint REFERENCES pre_order(id),
        description text,
        total_amount numeric NOT NULL DEFAULT 0,
        status text NOT NULL DEFAULT 'pending',
        created_at timestamptz NOT NULL DEFAULT now()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS pre_invoice (
        id bigint GENERATED ALWAYS AS IDENTITY PRIMARY KEY,
        client_id bigint NOT NULL REFERENCES client(id),
        order_id bigint REFERENCES "order"(id),
        total_amount numeric NOT NULL DEFAULT 0,
        status text NOT NULL DEFAULT 'draft',
        created_at timestamptz NOT NULL DEFAULT now()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS invoice (
        id bigint GENERATED ALWAYS AS IDENTITY PRIMARY KEY,
        client_id bigint NOT NULL REFERENCES client(id),
        order_id bigint REFERENCES "order"(id),
        pre_invoice_id bigint REFERENCES pre_invoice(id),
        total_amount numeric NOT NULL DEFAULT 0,
        status text NOT NULL DEFAULT 'draft',
        created_at timestamptz NOT NULL DEFAULT now()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS n8n_job (
        id bigint GENERATED ALWAYS AS IDENTITY PRIMARY KEY,
        entity text NOT NULL,
        entity_id text NOT NULL,
        name text NOT NULL,
        url text NOT NULL,
        status text NOT NULL DEFAULT 'pending'
            CHECK (status IN ('pending', 'done', 'error')),
        created_at timestamptz NOT NULL DEFAULT now()
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS n8n_job_entity_idx ON n8n_job (entity, entity_id)
    """,
]


def sql_notify_function(channel: str) -> str:
    """Trigger function publishing each updated job row on ``channel``."""
    return f"""
        CREATE OR REPLACE FUNCTION n8n_job_notify() RETURNS trigger AS $$
        BEGIN
            PERFORM pg_notify('{channel}', row_to_json(NEW)::text);
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql
    """


def sql_notify_trigger() -> str:
    return """
        CREATE OR REPLACE TRIGGER n8n_job_update_notify
        AFTER UPDATE ON n8n_job
        FOR EACH ROW EXECUTE FUNCTION n8n_job_notify()
    """


async def create_schema(conn, jobs: JobsConfig | None = None) -> None:
    """Create tables and the job update trigger."""
    channel = (jobs or JobsConfig()).notify_channel
    async with conn.cursor() as cur:
        for statement in SCHEMA:
            await cur.execute(statement)
        await cur.execute(sql_notify_function(channel))
        await cur.execute(sql_notify_trigger())
    print(f"Schema ready (job updates on {channel})")
