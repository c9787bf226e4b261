import logging

from point_alignment import checkpoint


def test_checkpoint_logs_elapsed_time(caplog):
    timer = checkpoint(time_ref=0.0)
    with caplog.at_level(logging.INFO):
        assert timer("Loading") > 0
        assert timer() >= 0
    assert len(caplog.records) == 1
    assert caplog.records[0].getMessage().startswith("Loading: ")
