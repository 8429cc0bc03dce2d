# Tool defaults (YAML sections in configs/netops.yaml and CLI flags override these)
HACKER = {
    "home_reserve": 32.0,        # GB kept free on home
    "money_threshold": 0.80,     # grow until money >= 80% of max
    "security_buffer": 5.0,      # weaken when security > min + 5
    "hack_percent": 0.25,        # steal 25% of current money per cycle
    "max_targets": 100,
    "loop_delay_ms": 200.0,
    "min_wait_ms": 1000.0,
    "max_wait_ms": 30000.0,
    "retry_delay_ms": 5000.0,
    "primary_host": "home",
    "target_override": "",
    "dry_run": False,
}

SCORER = {
    "excluded_prefixes": ("pserv-",),
    "excluded_hosts": ("home",),
}

SHARE = {
    "min_free": 4.0,             # GB left free on every other host
    "home_reserve": 32.0,
    "interval_ms": 10000.0,
    "primary_host": "home",
}

SERVERS = {
    "prefix": "pserv",
    "min_ram": 8.0,
    "reserve": 0.0,              # money kept in reserve
    "interval_ms": 10000.0,
}

REPUTATION = {
    "faction": "",               # empty = auto-select
    "no_work": False,
    "interval_ms": 2000.0,
    "reserve": 0.0,
}

AUGMENTATIONS = {
    "cost_multiplier": 1.9,
    "reserve": 0.0,
}

PORTFOLIO = {
    "max_portfolio_percent": 0.80,   # invest at most 80% of cash
    "max_positions_long": 4,
    "max_positions_short": 4,
    "max_shares_per_stock": 0.25,    # at most 25% of a stock's float
    "long_forecast_min": 0.55,
    "short_forecast_max": 0.45,
    "min_expected_return": 0.0005,
    "long_exit_forecast": 0.50,
    "short_exit_forecast": 0.50,
    "opportunity_cost_threshold": 0.002,
    "opportunity_cost_forecast": 0.53,
    "min_profit_to_sell": 0.02,
    "stop_loss": -0.10,
    "simulation_starting_cash": 100_000_000_000.0,
    "can_short": False,
}

STOCK_TRADER = {
    "tick_ms": 6000.0,
    "live": False,
}

NETWORK_MAP = {
    "start": "home",
    "max_depth": -1,
    "sort": "depth,host",
    "where": "",
    "limit": 0,
}

DASHBOARD = {
    "refresh_ms": 1000.0,
}

# World snapshot used when NETOPS_WORLD and --world are both unset
DEFAULT_WORLD = "configs/world_example.yaml"

# Structured event log (JSON lines); empty disables the file handler
EVENTS_LOG = "logs/netops_events.log"
