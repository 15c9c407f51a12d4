"""oslo.config options for services that embed the resolver.

Hosts built on oslo.config register these options in their own
``ConfigOpts`` and turn them into :class:`ResolverOptions`::

    register_resolver_opts(CONF)
    options = options_from_conf(CONF)
"""

from __future__ import annotations

from oslo_config import cfg

from endpoint_pool.channel import DEFAULT_CAPACITY

from .config import ResolverOptions, WatchOptions

GROUP = "kube_resolver"

_WATCH_DEFAULTS = WatchOptions()

resolver_opts = [
    cfg.BoolOpt('skip_malformed_subsets',
                default=False,
                help='Leave out endpoint subsets whose port cannot be '
                     'resolved instead of stopping resolution for the '
                     'whole service.'),
    cfg.IntOpt('channel_capacity',
               default=DEFAULT_CAPACITY,
               min=1,
               help='Number of membership changes buffered between a '
                    'resolver and its endpoint pool.'),
    cfg.IntOpt('watch_timeout',
               default=_WATCH_DEFAULTS.timeout_seconds,
               min=1,
               help='Server side timeout in seconds of one endpoints '
                    'watch request.'),
    cfg.FloatOpt('watch_initial_backoff',
                 default=_WATCH_DEFAULTS.initial_backoff,
                 min=0,
                 help='Delay in seconds before retrying a failed watch.'),
    cfg.FloatOpt('watch_backoff_factor',
                 default=_WATCH_DEFAULTS.backoff_factor,
                 min=1,
                 help='Multiplier applied to the retry delay after each '
                      'consecutive failure.'),
    cfg.FloatOpt('watch_max_backoff',
                 default=_WATCH_DEFAULTS.max_backoff,
                 min=0,
                 help='Upper bound in seconds of the watch retry delay.'),
    cfg.IntOpt('watch_max_retries',
               default=_WATCH_DEFAULTS.max_retries,
               min=0,
               help='Consecutive watch failures tolerated before the '
                    'resolver gives up.'),
]


def register_resolver_opts(conf: cfg.ConfigOpts, group: str = GROUP) -> None:
    conf.register_opts(resolver_opts, group=group)


def options_from_conf(conf: cfg.ConfigOpts, group: str = GROUP) -> ResolverOptions:
    section = getattr(conf, group)
    return ResolverOptions(
        skip_malformed_subsets=section.skip_malformed_subsets,
        channel_capacity=section.channel_capacity,
        watch=WatchOptions(
            timeout_seconds=section.watch_timeout,
            initial_backoff=section.watch_initial_backoff,
            backoff_factor=section.watch_backoff_factor,
            max_backoff=section.watch_max_backoff,
            max_retries=section.watch_max_retries,
        ),
    )


def list_opts():
    """Entry point for ``oslo-config-generator``."""

    return [(GROUP, resolver_opts)]
