def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    assert 'message' in res.get_json()


def test_login_creates_guest_once(client):
    res = client.post('/login')
    assert res.status_code == 200
    first = res.get_json()
    assert first['user']['username'].startswith('Player-')
    assert first['user']['avatar'].startswith('avatar-')
    assert first['roomId'] is None
    # the remember cookie keeps the same identity
    again = client.post('/login').get_json()
    assert again['user']['id'] == first['user']['id']


def test_room_requires_login(client):
    res = client.get('/room')
    assert res.status_code == 401


def test_room_when_not_bound(client):
    client.post('/login')
    res = client.get('/room')
    assert res.status_code == 404
    assert res.get_json()['code'] == 'not_in_room'


def test_room_shows_callers_view(connect_player):
    host, host_sio, host_http = connect_player()
    guest, guest_sio, guest_http = connect_player()
    host_sio.emit('/game/create')
    code = host_sio.get_received()[-1]['args'][0]['id']
    guest_sio.emit('/game/join', {'roomId': code})
    host_sio.emit('/game/setting/isRandom', False)
    host_sio.emit('/game/start', {'correct': 'coffee', 'wrong': 'tea'})

    host_view = host_http.get('/room').get_json()
    guest_view = guest_http.get('/room').get_json()
    assert host_view['id'] == code
    assert host_view['state'] == 'in_progress'
    assert host_view['word'] == 'tea'
    assert guest_view['word'] == 'coffee'
    assert all('role' not in p for p in guest_view['players'])


def test_logout(client):
    client.post('/login')
    assert client.post('/logout').status_code == 200
    assert client.get('/room').status_code == 401
