"""Built-in endpoint table: exchange API hosts and where they are hosted."""

DEFAULT_ENDPOINTS = [
    # Binance
    {"id": "binance-us", "name": "Binance US", "latitude": 40.7128, "longitude": -74.0060, "provider": "AWS", "region": "US East", "region_code": "us-east-1", "probe_target": "api.binance.us", "probe_location": "US"},
    {"id": "binance-sg", "name": "Binance Singapore", "latitude": 1.3521, "longitude": 103.8198, "provider": "AWS", "region": "Asia Pacific", "region_code": "ap-southeast-1", "probe_target": "api.binance.com", "probe_location": "SG"},
    # OKX
    {"id": "okx-hk", "name": "OKX Hong Kong", "latitude": 22.3193, "longitude": 114.1694, "provider": "GCP", "region": "Asia East", "region_code": "asia-east1", "probe_target": "www.okx.com", "probe_location": "HK"},
    {"id": "okx-us", "name": "OKX US", "latitude": 37.7749, "longitude": -122.4194, "provider": "GCP", "region": "US West", "region_code": "us-west1", "probe_target": "www.okx.com", "probe_location": "US"},
    # Bybit
    {"id": "bybit-sg", "name": "Bybit Singapore", "latitude": 1.3521, "longitude": 103.8198, "provider": "Azure", "region": "Southeast Asia", "region_code": "southeastasia", "probe_target": "api.bybit.com", "probe_location": "SG"},
    {"id": "bybit-jp", "name": "Bybit Japan", "latitude": 35.6762, "longitude": 139.6503, "provider": "Azure", "region": "Japan East", "region_code": "japaneast", "probe_target": "api.bybit.com", "probe_location": "JP"},
    # Deribit
    {"id": "deribit-nl", "name": "Deribit Netherlands", "latitude": 52.3676, "longitude": 4.9041, "provider": "AWS", "region": "Europe", "region_code": "eu-central-1", "probe_target": "www.deribit.com", "probe_location": "NL"},
    # Coinbase
    {"id": "coinbase-us", "name": "Coinbase US", "latitude": 37.7749, "longitude": -122.4194, "provider": "AWS", "region": "US West", "region_code": "us-west-2", "probe_target": "api.coinbase.com", "probe_location": "US"},
    # Kraken
    {"id": "kraken-us", "name": "Kraken US", "latitude": 47.6062, "longitude": -122.3321, "provider": "GCP", "region": "US West", "region_code": "us-west1", "probe_target": "api.kraken.com", "probe_location": "US"},
    # Bitfinex
    {"id": "bitfinex-hk", "name": "Bitfinex Hong Kong", "latitude": 22.3193, "longitude": 114.1694, "provider": "Azure", "region": "East Asia", "region_code": "eastasia", "probe_target": "api.bitfinex.com", "probe_location": "HK"},
    # BitMEX
    {"id": "bitmex-sg", "name": "BitMEX Singapore", "latitude": 1.3521, "longitude": 103.8198, "provider": "AWS", "region": "Asia Pacific", "region_code": "ap-southeast-1", "probe_target": "www.bitmex.com", "probe_location": "SG"},
]
