from adminhub.parsers.cpu import parse_cpu_usage
from adminhub.parsers.disk import parse_disk
from adminhub.parsers.memory import parse_memory
from adminhub.parsers.services import parse_running_services
from adminhub.parsers.sizes import parse_size
from adminhub.parsers.uptime import parse_load_average, parse_uptime

__all__ = [
    "parse_cpu_usage",
    "parse_disk",
    "parse_load_average",
    "parse_memory",
    "parse_running_services",
    "parse_size",
    "parse_uptime",
]
