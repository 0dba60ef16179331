"""Sample clients, pre-orders and orders for development."""

SEED_PERSONS = [
    {
        "name": "علی رضایی",
        "ssn": "0499370899",
        "phone": "09121234567",
        "county": "تهران",
        "town": "شمیرانات",
        "address": "تهران خیابان ولیعصر کوچه بهار پلاک ۱۲",
        "postal_code": "1965733111",
        "status": "done",
    },
    {
        "name": "مریم احمدی",
        "ssn": "1234567891",
        "phone": "09351234567",
        "county": "اصفهان",
        "town": "اصفهان",
        "address": "اصفهان خیابان چهارباغ عباسی",
        "postal_code": "8174673111",
        "status": "paused",
    },
]

SEED_COMPANIES = [
    {
        "name": "شرکت بازرگانی پارس",
        "ssn": "10103456789",
        "phone": "02188776655",
        "county": "تهران",
        "town": "تهران",
        "address": "تهران میدان ونک برج نگار",
        "postal_code": "1994834511",
        "status": "not_started",
    },
]

# Pre-orders by client name: (description, estimated_amount, status)
SEED_PRE_ORDERS = {
    "علی رضایی": [
        ("خرید تجهیزات اداری", 150000000, "pending"),
        ("تعمیر سیستم سرمایش", None, "approved"),
    ],
    "شرکت بازرگانی پارس": [
        ("تامین مواد اولیه فصل پاییز", 980000000, "converted"),
    ],
}

# Orders created from converted pre-orders: (order_number, total_amount, status)
SEED_ORDERS = {
    "تامین مواد اولیه فصل پاییز": ("1403-0001", 975000000, "confirmed"),
}


async def _insert_client(cur, table: str, client_type: str, data: dict) -> int | None:
    await cur.execute(f"SELECT id FROM {table} WHERE name = %(name)s", {"name": data["name"]})
    if await cur.fetchone():
        print(f"Client already exists: {data['name']}")
        return None

    await cur.execute(
        f"""
        INSERT INTO {table} (name, ssn, phone, county, town, address, postal_code)
        VALUES (%(name)s, %(ssn)s, %(phone)s, %(county)s, %(town)s, %(address)s, %(postal_code)s)
        RETURNING id
        """,
        data,
    )
    party_id = (await cur.fetchone())[0]

    await cur.execute(
        f"""
        INSERT INTO client ({table}_id, type, status)
        VALUES (%(party_id)s, %(type)s, %(status)s)
        RETURNING id
        """,
        {"party_id": party_id, "type": client_type, "status": data["status"]},
    )
    client_id = (await cur.fetchone())[0]
    print(f"Created client: {data['name']} (id: {client_id})")
    return client_id


async def seed_clients(conn) -> None:
    """Insert sample clients with their pre-orders and orders."""
    async with conn.cursor() as cur:
        created: dict[str, tuple[int, str]] = {}
        for person in SEED_PERSONS:
            client_id = await _insert_client(cur, "person", "personal", person)
            if client_id:
                created[person["name"]] = (client_id, "personal")
        for company in SEED_COMPANIES:
            client_id = await _insert_client(cur, "company", "company", company)
            if client_id:
                created[company["name"]] = (client_id, "company")

        for client_name, pre_orders in SEED_PRE_ORDERS.items():
            if client_name not in created:
                continue
            client_id, client_type = created[client_name]

            for description, amount, status in pre_orders:
                await cur.execute(
                    """
                    INSERT INTO pre_order
                        (client_id, client_name, type, description, estimated_amount, status)
                    VALUES
                        (%(client_id)s, %(client_name)s, %(type)s, %(description)s,
                         %(amount)s, %(status)s)
                    RETURNING id
                    """,
                    {
                        "client_id": client_id,
                        "client_name": client_name,
                        "type": client_type,
                        "description": description,
                        "amount": amount,
                        "status": status,
                    },
                )
                pre_order_id = (await cur.fetchone())[0]
                print(f"  Created pre-order: {description}")

                if description not in SEED_ORDERS:
                    continue
                order_number, total, order_status = SEED_ORDERS[description]
                await cur.execute(
                    """
                    INSERT INTO "order"
                        (order_number, client_id, pre_order_id, description, total_amount, status)
                    VALUES
                        (%(order_number)s, %(client_id)s, %(pre_order_id)s, %(description)s,
                         %(total)s, %(status)s)
                    """,
                    {
                        "order_number": order_number,
                        "client_id": client_id,
                        "pre_order_id": pre_order_id,
                        "description": description,
                        "total": total,
                        "status": order_status,
                    },
                )
                print(f"  Created order: {order_number}")


async def clear_clients(conn) -> None:
    """Remove all business data, jobs included."""
    async with conn.cursor() as cur:
        for table in ("n8n_job", "invoice", "pre_invoice", '"order"', "pre_order", "client", "person", "company"):
            await cur.execute(f"DELETE FROM {table}")
        print("Cleared clients, pre-orders, orders and jobs")
