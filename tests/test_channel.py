import queue

import pytest

from procsched.ipc.channel import Channel, Message, MessageType
from procsched.simulator.pcb import WorkloadDescriptor


class FlakyTransport:
    """Raises OSError on every read, as a broken pipe would."""

    def put(self, item):
        pass

    def get_nowait(self):
        raise OSError("broken pipe")


def test_receive_by_type_keeps_other_types_buffered():
    channel = Channel(queue.Queue())
    channel.send(Message.arrival(WorkloadDescriptor(1, 0, 2, 0)))
    channel.send(Message.end())
    channel.send(Message.arrival(WorkloadDescriptor(2, 0, 2, 0)))

    end = channel.receive(MessageType.END)
    assert end is not None and end.type is MessageType.END
    assert channel.has_pending(MessageType.ARRIVAL)
    assert channel.receive(MessageType.ARRIVAL).process_id == 1
    assert channel.receive(MessageType.ARRIVAL).process_id == 2
    assert channel.receive(MessageType.ARRIVAL) is None
    assert channel.receive(MessageType.END) is None


def test_receive_on_empty_channel_returns_none():
    assert Channel(queue.Queue()).receive(MessageType.ARRIVAL) is None


def test_transport_errors_read_as_empty():
    channel = Channel(FlakyTransport())
    assert channel.receive(MessageType.END) is None


def test_completion_message_carries_pid():
    message = Message.completion(4242)
    assert message.type is MessageType.COMPLETION
    assert message.pid == 4242
    with pytest.raises(ValueError):
        message.to_descriptor()


def test_arrival_round_trips_descriptor():
    descriptor = WorkloadDescriptor(process_id=5, arrival_time=3, runtime=7, priority=2)
    assert Message.arrival(descriptor).to_descriptor() == descriptor
