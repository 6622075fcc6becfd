"""Unit tests for LogFilter / BlockRange validation and topic merging."""

import pytest

from log_indexer.app.domain.errors import InvalidFilterError, ProviderError
from log_indexer.app.domain.models import BlockRange, LogFilter, event_signature_topic


TRANSFER_TOPIC = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"
TOPIC_1 = "0x" + "01".rjust(64, "0")
TOPIC_2 = "0x" + "02".rjust(64, "0")
ADDRESS = "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"


class TestBlockRange:
    def test_single_block_range_is_valid(self):
        BlockRange(from_block=100, to_block=100).validate()

    def test_inverted_range_is_rejected(self):
        with pytest.raises(InvalidFilterError):
            BlockRange(from_block=101, to_block=100).validate()

    def test_negative_block_is_rejected(self):
        with pytest.raises(InvalidFilterError):
            BlockRange(from_block=-1, to_block=5).validate()


class TestLogFilterValidation:
    def test_empty_filter_is_valid(self):
        LogFilter().validate()

    def test_to_block_before_from_block_is_rejected(self):
        with pytest.raises(InvalidFilterError):
            LogFilter(from_block=10, to_block=9).validate()

    def test_invalid_filter_is_a_provider_error(self):
        """Parse failures belong to the provider-error kind."""
        with pytest.raises(ProviderError):
            LogFilter(address="0xabc").validate()

    def test_open_ended_range_is_valid(self):
        LogFilter(from_block=10).validate()
        LogFilter(to_block=10).validate()

    def test_address_case_is_accepted(self):
        LogFilter(address=ADDRESS).validate()
        LogFilter(address=ADDRESS.lower()).validate()

    @pytest.mark.parametrize(
        "address",
        [
            ADDRESS[2:],
            "0x" + "zz" * 20,
            ADDRESS + "00",
        ],
    )
    def test_malformed_addresses_are_rejected(self, address):
        with pytest.raises(InvalidFilterError):
            LogFilter(address=address).validate()

    def test_too_many_topics_are_rejected(self):
        with pytest.raises(InvalidFilterError):
            LogFilter(topics=(TOPIC_1, None, None, None, TOPIC_2)).validate()

    def test_malformed_topic_is_rejected(self):
        with pytest.raises(InvalidFilterError):
            LogFilter(topics=("0x01",)).validate()

    def test_empty_or_list_is_rejected(self):
        with pytest.raises(InvalidFilterError):
            LogFilter(topics=([],)).validate()

    def test_topics_list_is_stored_as_tuple(self):
        log_filter = LogFilter(topics=[TOPIC_1, None])  # type: ignore[arg-type]
        assert log_filter.topics == (TOPIC_1, None)

    def test_with_range_keeps_criteria(self):
        log_filter = LogFilter(address=ADDRESS, topics=(TOPIC_1,))
        resolved = log_filter.with_range(5, 7)
        assert (resolved.from_block, resolved.to_block) == (5, 7)
        assert resolved.address == ADDRESS
        assert resolved.topics == (TOPIC_1,)


class TestEventSignature:
    def test_text_signature_is_hashed(self):
        assert event_signature_topic("Transfer(address,address,uint256)") == TRANSFER_TOPIC

    def test_whitespace_in_signature_is_ignored(self):
        assert event_signature_topic("Transfer(address, address, uint256)") == TRANSFER_TOPIC

    def test_hex_topic_is_passed_through_lowercased(self):
        assert event_signature_topic(TRANSFER_TOPIC.upper().replace("0X", "0x")) == TRANSFER_TOPIC

    def test_garbage_signature_is_rejected(self):
        with pytest.raises(InvalidFilterError):
            event_signature_topic("Transfer")

    def test_signature_fills_empty_topic0(self):
        log_filter = LogFilter(event_signature="Transfer(address,address,uint256)")
        assert log_filter.topic_positions() == [TRANSFER_TOPIC]

    def test_signature_replaces_wildcard_topic0(self):
        log_filter = LogFilter(topics=(None, TOPIC_1), event_signature=TRANSFER_TOPIC)
        assert log_filter.topic_positions() == [TRANSFER_TOPIC, TOPIC_1]

    def test_signature_agreeing_with_topic0(self):
        log_filter = LogFilter(topics=(TRANSFER_TOPIC,), event_signature="Transfer(address,address,uint256)")
        assert log_filter.topic_positions() == [TRANSFER_TOPIC]

    def test_signature_contradicting_topic0_is_rejected(self):
        log_filter = LogFilter(topics=(TOPIC_1,), event_signature=TRANSFER_TOPIC)
        with pytest.raises(InvalidFilterError):
            log_filter.validate()
