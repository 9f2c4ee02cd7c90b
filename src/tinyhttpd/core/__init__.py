"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                          ACCEPTOR                                    │
    │  • Binds the TCP listener                                           │
    │  • Accept loop; one callback per connection                         │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ pool.execute(job)
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                          THREAD POOL                                 │
    │  • Fixed number of worker threads                                   │
    │  • One shared FIFO job queue (optionally bounded)                   │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ worker runs the job
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                       CONNECTION HANDLER                             │
    │  • One read, parse, dispatch or static fallback, respond, close     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .acceptor import Acceptor
from .connection import ConnectionHandler, SocketStream
from .thread_pool import ThreadPool, Worker, WorkerState

__all__ = [
    "Acceptor",           # TCP listener and accept loop
    "ConnectionHandler",  # One connection, start to finish
    "SocketStream",
    "ThreadPool",         # Fixed worker threads over a shared queue
    "Worker",
    "WorkerState",
]
