import queue


class ChunkChannel:
    """
    Bounded FIFO between the PortAudio callback (single producer) and the
    display loop (single consumer).

    put_nowait() never blocks: when the queue is full the oldest chunk is
    thrown away and `dropped` goes up. drain() never blocks either.
    """

    def __init__(self, capacity=64):
        self.capacity = int(capacity)
        # the Queue mutex is only held inside put_nowait/get_nowait, never across a wait
        self.q = queue.Queue(maxsize=self.capacity)
        self.dropped = 0

    def put_nowait(self, chunk):
        try:
            self.q.put_nowait(chunk)
            return
        except queue.Full:
            pass
        try:
            self.q.get_nowait()
            self.dropped += 1
        except queue.Empty:
            pass
        try:
            self.q.put_nowait(chunk)
        except queue.Full:
            # only reachable with a second producer
            self.dropped += 1

    def drain(self):
        out = []
        while True:
            try:
                out.append(self.q.get_nowait())
            except queue.Empty:
                return out

    def qsize(self) -> int:
        return self.q.qsize()
