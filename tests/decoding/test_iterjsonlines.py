from kubestate._cogs.clients.decoding import iter_jsonlines, read_document


async def test_empty_content(content_factory):
    content = content_factory()
    lines = []
    async for line in iter_jsonlines(content):
        lines.append(line)

    assert lines == []


async def test_empty_chunk(content_factory):
    content = content_factory(b'')
    lines = []
    async for line in iter_jsonlines(content):
        lines.append(line)

    assert lines == []


async def test_one_chunk_one_line(content_factory):
    content = content_factory(b'hello')
    lines = []
    async for line in iter_jsonlines(content):
        lines.append(line)

    assert lines == [b'hello']


async def test_one_chunk_two_lines(content_factory):
    content = content_factory(b'hello\nworld')
    lines = []
    async for line in iter_jsonlines(content):
        lines.append(line)

    assert lines == [b'hello', b'world']


async def test_one_chunk_empty_lines(content_factory):
    content = content_factory(b'\n\nhello\n\nworld\n\n')
    lines = []
    async for line in iter_jsonlines(content):
        lines.append(line)

    assert lines == [b'hello', b'world']


async def test_few_chunks_split(content_factory):
    content = content_factory(b'\n\nhell', b'o\n\nwor', b'ld\n\n')
    lines = []
    async for line in iter_jsonlines(content):
        lines.append(line)

    assert lines == [b'hello', b'world']


async def test_whitespace_only_lines_are_skipped(content_factory):
    content = content_factory(b'hello\n  \n\t\nworld')
    lines = []
    async for line in iter_jsonlines(content):
        lines.append(line)

    assert lines == [b'hello', b'world']


async def test_document_of_empty_content(content_factory):
    content = content_factory()
    records = [record async for record in read_document(content)]
    assert records == []


async def test_document_of_blank_content(content_factory):
    content = content_factory(b'\n  \n')
    records = [record async for record in read_document(content)]
    assert records == []


async def test_document_spans_lines_and_chunks(content_factory):
    content = content_factory(b'{\n  "a"', b': 1\n}\n')
    records = [record async for record in read_document(content)]
    assert records == [b'{\n  "a": 1\n}\n']
