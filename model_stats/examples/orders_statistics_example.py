"""
Example: Declaring and evaluating statistics for an orders table.

This example builds a small SQLite database, declares plain and derived
statistics on it and evaluates them with and without filters.
"""

import sqlalchemy as sa

from model_stats import SqlCollection, Statistics


def create_orders_engine() -> sa.Engine:
    """Create an in-memory database with a few orders."""
    engine = sa.create_engine("sqlite://")
    metadata = sa.MetaData()
    orders = sa.Table(
        "orders", metadata,
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("amount", sa.Integer),
        sa.Column("channel", sa.String(20)),
        sa.Column("status", sa.String(20)),
        sa.Column("created_at", sa.String(10)),
    )
    metadata.create_all(engine)
    with engine.begin() as connection:
        connection.execute(orders.insert(), [
            {"amount": 10, "channel": "web", "status": "paid", "created_at": "2024-01-05"},
            {"amount": 20, "channel": "store", "status": "paid", "created_at": "2024-02-10"},
            {"amount": 30, "channel": "web", "status": "refunded", "created_at": "2024-03-15"},
        ])
    return engine


def example_basic_usage():
    """Plain statistics, global filters and a derived statistic."""
    engine = create_orders_engine()
    orders = SqlCollection(engine, "orders", scopes={"paid": "status = 'paid'"})

    stats = Statistics(orders)
    stats.register("Order Count", count="all")
    stats.register("Revenue", sum="all", column="amount")
    stats.register("Paid Revenue", sum=["paid"], column="amount")
    stats.register("Largest Order", maximum="all", column="amount")
    stats.set_global_filter_template("channel", "channel = ?")
    stats.set_global_filter_template("since", "created_at >= ?")

    @stats.register_derived("Average Order")
    def average_order(ctx):
        count = ctx["Order Count"]
        return ctx["Revenue"] / count if count else None

    print("=== All orders ===")
    for name, value in stats.evaluate_all().items():
        print(f"{name}: {value}")

    print("\n=== Web orders since February ===")
    filters = {"channel": "web", "since": "2024-02-01"}
    for name, value in stats.evaluate_all(filters).items():
        print(f"{name}: {value}")


def example_with_config():
    """Statistics declared through a configuration dictionary."""
    engine = create_orders_engine()
    config = {
        'statistics': {
            'filters': {'channel': 'channel = ?'},
            'definitions': {
                'Order Count': {'count': 'all'},
                'Refunded Total': {'sum': 'all', 'column': 'amount', 'conditions': "status = 'refunded'"},
            },
        }
    }

    stats = Statistics(SqlCollection(engine, "orders"), config_dict=config)

    print(f"Statistics: {stats.list_names()}")
    print(f"Refunded total (web): {stats.evaluate('Refunded Total', {'channel': 'web'})}")


if __name__ == '__main__':
    print("=== Example 1: Basic Usage ===\n")
    example_basic_usage()

    print("\n\n=== Example 2: With Config ===\n")
    example_with_config()
