from musd_indexer.processors.context import EventHandlerContext


def update_protocol_timestamps(context: EventHandlerContext) -> None:
    """
    Stamp the protocol stats record with the position of the event being processed and save it.
    Every handler calls this as its final step.
    """

    context.stats.updated_at_block = context.block_number
    context.stats.updated_at_timestamp = context.block_timestamp
    context.store.save(context.stats)
